from setuptools import setup, find_packages


setup(
    name="sisa",
    version="0.1.0",
    author="SISA contributors",
    description="Assembler and interpreter for the SISA 16-bit instruction set",
    license="0-clause BSD License",
    python_requires=">=3.10",
    setup_requires=[
        "setuptools",
    ],
    install_requires=[
        "typing_extensions",
        "pyvcd",
    ],
    packages=find_packages(include=["sisa", "sisa.*"]),
    entry_points={
        "console_scripts": [
            "sisa = sisa.cli:run_main"
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'License :: OSI Approved', # ' :: 0-clause BSD License', (not in PyPI)
        'Topic :: Software Development :: Assemblers',
        'Topic :: Software Development :: Interpreters',
    ],
)
