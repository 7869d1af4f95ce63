#!/usr/bin/env python
import os

from setuptools import find_packages, setup

# Get version info
__version__ = None
__release__ = None
exec(open("fmtools/version.py").read())


def content_of(*files):
    here = os.path.abspath(os.path.dirname(__file__))
    content = []
    for f in files:
        with open(os.path.join(here, f), encoding="utf-8") as stream:
            content.append(stream.read())
    return "\n".join(content)


setup(
    name="fmtools",
    version=__release__,
    description="Extended formatting syntax: templates with control flow "
    "compiled to Python",
    long_description=content_of("README.rst", "CHANGES.rst"),
    classifiers=[  # http://pypi.python.org/pypi?:action=list_classifiers
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Text Processing",
    ],
    keywords="templating template format formatting string interpolation",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    zip_safe=False,
    install_requires=[],
    python_requires=">=3.10",
    extras_require={
        "testing": ["pytest"],
        "docs": ["sphinx"],
    },
    entry_points="""
        [console_scripts]
        fmtools = fmtools.__main__:main
    """,
)
