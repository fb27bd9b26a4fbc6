from setuptools import setup, find_packages

long_description = 'Interactive terminal process and network monitor'

setup(
    name='proctop',
    version='0.1.0',
    description='Interactive terminal process and network monitor',
    long_description=long_description,
    long_description_content_type="text/markdown",
    license='MIT',
    packages=find_packages(exclude=("tests",)),
    entry_points={
            'console_scripts': [
                'proctop = proctop.proctop:cli',
            ]
    },
    classifiers=(
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
    ),
    keywords='proctop top process monitor terminal',
    python_requires='>=3.8',
    install_requires=[
        "blessed",
        "dashing",
        "psutil",
        "toml",
    ],
    extras_require={
        "dev": [
            "pytest",
            "ruff",
        ],
    },
    zip_safe=False
)
