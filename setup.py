from setuptools import setup

# Version
version = None
with open("proportionality/__init__.py", "r") as f:
    for line in f.readlines():
        line = line.strip()
        if line.startswith("__version__"):
            version = line.split("=")[-1].strip().strip('"')
assert version is not None, "Check version in proportionality/__init__.py"

setup(
name='proportionality',
    version=version,
    description='Proportionality statistics for compositional data in Python',
    url='https://github.com/jolespin/proportionality',
    author='Josh L. Espinoza',
    author_email='jespinoz@jcvi.org',
    license='BSD-3',
    packages=["proportionality"],
    install_requires=[
        "pandas",
        "numpy",
        "scipy",
      ],
    extras_require={
        "test": ["pytest"],
      },
)
