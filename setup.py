from setuptools import setup, find_packages
import re

# Read version from quotecalc/__init__.py
with open('quotecalc/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='quotecalc',
    version=version,
    packages=find_packages(include=['quotecalc', 'quotecalc.*']),
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'mcp': [
            'mcp[cli]>=1.0.0',
        ],
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'quote-calc=quotecalc.cli.__main__:main',
            'quote-calc-mcp=quotecalc.mcp.server:run_server',
        ],
    },
    author='Personal',
    description='Service-fee quote pricing for bookkeeping, tax and advisory work.',
    python_requires='>=3.10',
)
