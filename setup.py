# coding: utf-8
from setuptools import find_packages, setup


with open('README.md', encoding='utf8') as file:
    long_description = file.read()

setup(
    name='hrobot',
    version='1.0',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    license='MIT',
    description='Python client for the Hetzner Robot web service',
    long_description=long_description,
    long_description_content_type='text/markdown',
    python_requires='>=3.8',
    install_requires=[
        'httpx',
    ],
    extras_require={
        'requests': ['requests'],
        'test': ['pytest', 'requests'],
    },
)
