"""Install the CheckMyPaper review core package.

This installs the ``checkmypaper`` package from ``core/``, including the
review API and the notification worker.
"""

from setuptools import setup, find_packages

setup(
    name='checkmypaper-review-core',
    version='0.1.0',
    package_dir={'': 'core'},
    packages=find_packages(where='core'),
    zip_safe=False,
    python_requires='>=3.7',
    install_requires=[
        'flask>=2.2',
        'werkzeug',
        'bleach',
        'python-dateutil',
        'sqlalchemy>=1.4',
        'flask-sqlalchemy>=3.0',
        'celery',
        'kombu',
        'redis',
        'retry',
        'pytz',
        'boto3',
        'botocore',
        'pyjwt',
    ],
    extras_require={
        'test': ['pytest'],
    },
    include_package_data=True
)
