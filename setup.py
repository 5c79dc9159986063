#!/usr/bin/env python
##
## Name:     setup.py
## Purpose:  Install the idsplice element-patching module.
##
## Copyright (C) 2009, Michael J. Fromberger, All Rights Reserved.
##
## Standard usage:  pip install .
##
from setuptools import setup
from idsplice import __version__ as lib_version

setup(name = 'idsplice',
      version = lib_version,
      description = 'Replace one element of an HTML-like document by its id',
      long_description = """
This module finds the element of a markup document whose id attribute has a
given value and replaces it, start tag through matching end tag, with new
text.  The document is scanned, not parsed into a tree, so malformed markup
is tolerated and every character outside the replaced element is preserved
exactly.""",
      author = 'M. J. Fromberger',
      author_email = "michael.j.fromberger@gmail.com",
      url = 'http://spinning-yarns.org/michael/',
      classifiers = ['Development Status :: 5 - Production/Stable',
                     'Intended Audience :: Developers',
                     'License :: OSI Approved :: MIT License',
                     'Operating System :: OS Independent',
                     'Programming Language :: Python :: 3',
                     'Topic :: Text Processing :: Markup :: HTML',
                     'Topic :: Text Processing :: Markup',
                     'Topic :: Software Development :: Libraries'],
      python_requires = '>=3.6',
      py_modules = ['idsplice'],
      scripts = ['splice.py'],
      )

# Here there be dragons
