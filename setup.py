from setuptools import setup, find_packages

setup(
    name='routerctl',
    version='0.1.0',
    packages=find_packages(exclude=['routerctl.tests']),
    include_package_data=True,
    package_data={
        'routerctl.modules': ['templates/*.j2'],
    },
    install_requires=[
        'typer[all]<0.26',
        'click',
        'kubernetes',
        'urllib3',
        'pyyaml',
        'pydantic>=2',
        'jinja2',
        'python-dotenv',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'routerctl=routerctl.cli:app',
            'configure-router=routerctl.commands.configure:app',
            'select-mode=routerctl.commands.mode:app',
        ]
    },
    description='Post-boot configuration reconciler for the semantic router appliance',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: POSIX :: Linux',
    ],
    python_requires='>=3.8',
)
