"""
docparser setup: docparser runs documents through an annotation
pipeline and writes out one row of aligned token annotations per
sentence
"""

from setuptools import setup, find_packages
import glob
import os

REQS = [
    'nltk >= 3.8',
    'pandas >= 1.0',
    'tabulate',
    'fastapi',
    'pydantic',
    'uvicorn',
]

TEST_REQS = [
    'pytest',
    'httpx',
]


setup(name='docparser',
      version='0.1',
      packages=find_packages(),
      scripts=[f for f in glob.glob('scripts/*') if not os.path.isdir(f)],
      install_requires=REQS,
      extras_require={'test': TEST_REQS})
