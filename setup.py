from setuptools import setup

# Metadata lives in pyproject.toml; this bridge keeps legacy editable
# installs (pip install -e . without PEP 660 support) working.
setup()
