#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
import re
from setuptools import setup

dir_path = os.path.dirname(os.path.realpath(__file__))

init_string = open(os.path.join(dir_path, 'py', 'gmcns',
                                '__init__.py')).read()
VERS = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VERS, init_string, re.M)
__version__ = mo.group(1)

with open(os.path.join(dir_path, 'README.md'), 'r') as f:
    long_description = f.read()

setup(name="gmcns",
      version=__version__,
      packages=["gmcns"],
      license="MIT",
      description=("Convergence loop for nested sampling ensembles: "
                   "stopping criteria, backups and resumable runs."),
      long_description=long_description,
      long_description_content_type="text/markdown",
      package_dir={'': 'py/'},
      install_requires=["numpy", "scipy"],
      extras_require={
          "progress": ["tqdm"],
          "test": ["pytest", "tqdm"]
      },
      python_requires=">=3.8",
      keywords=[
          "nested sampling", "galilean monte carlo", "bayesian", "evidence",
          "convergence"
      ],
      classifiers=[
          "Development Status :: 4 - Beta",
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English", "Programming Language :: Python",
          "Operating System :: OS Independent",
          "Topic :: Scientific/Engineering",
          "Intended Audience :: Science/Research"
      ])
