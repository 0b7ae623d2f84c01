from setuptools import setup, find_packages

setup(
    name='nodeprobe',
    version='0.1.0',
    packages=find_packages(),
    include_package_data=True,
    install_requires=[
        'typer[all]',
        'fastapi',
        'uvicorn',
        'paramiko',
        'pydantic>=2',
        'pyyaml',
        'python-dotenv',
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx',
        ],
    },
    entry_points={
        'console_scripts': [
            'nodeprobe=nodeprobe.cli:app'
        ]
    },
    description='CLI and API for checking role software on nodes reached through chained SSH hops',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
