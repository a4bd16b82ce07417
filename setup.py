from setuptools import setup, find_packages

setup(
    name='dotfetch',
    version='0.1.0',
    description='.NET SDK and runtime release downloader',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'PyYAML',
        'platformdirs',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest<9',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'dotfetch=dotfetch.cli:main',
        ],
    },
)
