#!/usr/bin/env python

import os

from setuptools import find_packages, setup

from davprops._version import __version__

version = __version__


try:
    readme = open("README.md", "rt").read()
except IOError:
    readme = "(Readme file not found. Running from tox/setup.py test?)"

# 'setup.py upload' fails on Vista, because .pypirc is searched on 'HOME' path
if "HOME" not in os.environ and "HOMEPATH" in os.environ:
    os.environ.setdefault("HOME", os.environ.get("HOMEPATH", ""))
    print("Initializing HOME environment variable to '{}'".format(os.environ["HOME"]))

# lxml is optional: xml_tools falls back to defusedxml + xml.etree
install_requires = ["defusedxml", "json5", "PyYAML", "SQLAlchemy>=1.4"]
tests_require = ["pytest"]

setup(
    name="DavProps",
    version=version,
    author="Martin Wendt",
    author_email="wsgidav@wwwendt.de",
    maintainer="Martin Wendt",
    maintainer_email="wsgidav@wwwendt.de",
    url="https://github.com/mar10/wsgidav/",
    description="Per-user dead property storage for WebDAV servers",
    long_description=readme,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Database",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="webdav caldav properties propfind proppatch sqlalchemy",
    license="MIT",
    packages=find_packages(exclude=["tests"]),
    install_requires=install_requires,
    tests_require=tests_require,
    python_requires=">=3.8",
    py_modules=[],
    zip_safe=False,
    extras_require={"lxml": ["lxml"], "test": tests_require},
    entry_points={"console_scripts": ["davprops = davprops.cli:run"]},
)
