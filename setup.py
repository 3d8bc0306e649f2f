from setuptools import setup, find_packages

setup(
    name='offline-vsix',
    version='0.1.0',
    description='Download VS Code extensions for offline installation',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'urllib3',
        'PyYAML',
        'platformdirs',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'offline-vsix=offline_vsix.cli:main',
        ],
    },
)
