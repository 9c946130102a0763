# -*- coding: utf-8 -*-
"""redisenterprise-dbplugin a credential plugin for Redis Enterprise clusters.

This module provisions, rotates and revokes database users on a Redis Enterprise cluster
through the cluster REST API, generating and binding roles to ACLs where asked.
The cluster admin credentials can themselves be rotated from GCP Secret Manager events.

"""

import setuptools
import re
from io import open

VERSIONFILE="redisenterprise_dbplugin/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
    verstr = mo.group(1)
else:
    raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))

with open("README.md", "r", encoding='utf-8') as fh:
    long_description = fh.read()

setuptools.setup(
    name='redisenterprise_dbplugin',
    version=verstr,
    author="Mike Moore",
    author_email="z_z_zebra@yahoo.com",
    description="A credential plugin that creates, rotates and deletes Redis Enterprise cluster users and binds them to roles and ACLs",
    long_description_content_type="text/markdown",
    long_description=long_description,
    url="https://github.com/Mikemoore63/redisenterprise-dbplugin",
    packages=setuptools.find_packages(),
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    license="MIT",
    scripts=[],
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.25,<3.0",
        "google-auth>=2.0,<3.0",
        "google-cloud-secret-manager~=2.0",
        "google-crc32c~=1.0",
        "python-dateutil~=2.0",
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],

)
