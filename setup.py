from setuptools import setup, find_packages

setup(
    name='edgek8s',
    version='0.1.0',
    packages=find_packages(exclude=['edgek8s.tests', 'edgek8s.tests.*']),
    include_package_data=True,
    package_data={
        'edgek8s.modules.kubernetes': ['templates/*.j2'],
    },
    install_requires=[
        'typer',
        'pydantic>=2',
        'pyyaml',
        'jinja2',
        'pydantic-settings>=2',
        'requests'
    ],
    extras_require={
        'test': [
            'pytest',
            'requests-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'edgek8s=edgek8s.cli:app'
        ]
    },
    author='Your Name',
    description='Kubernetes bootstrap configuration for customised edge OS images',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
