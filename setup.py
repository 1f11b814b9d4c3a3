from setuptools import setup, find_packages

setup(
    name='minipack',
    version='0.1.0',
    py_modules=['minipack', 'compiler'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'packcore': ['runtime/*.js'],
    },
    python_requires='>=3.8',
    install_requires=[
        'lark',
        'pydantic>=2',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'minipack = minipack:main',
        ],
    },
)
