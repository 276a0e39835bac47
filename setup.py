from setuptools import setup, find_packages

# Find all packages in the current directory
packages = find_packages(exclude=["tests", "tests.*"])

setup(
    name='impala-python',
    version='0.1.0',
    description='A streaming Python client for the Impala Beeswax service',
    long_description=open('README.md', encoding='utf-8').read(),
    long_description_content_type='text/markdown',
    author='impala-python developers',
    packages=packages,
    include_package_data=True,
    # Requires >= Python 3.10
    python_requires='>=3.10',
    install_requires=[
        'thrift>=0.16.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Topic :: Database :: Front-Ends',
    ],
    zip_safe=False,
)
