"""
Setup script for the NetHub Client.
"""

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    """Read README.md file."""
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Terminal client for the NetHub TCP chat, UDP health and HTTP link services."

# Read requirements from requirements.txt
def read_requirements(filename='requirements.txt'):
    """Read requirements from a requirements file."""
    requirements_path = os.path.join(os.path.dirname(__file__), filename)
    requirements = []
    if os.path.exists(requirements_path):
        with open(requirements_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    requirements.append(line)
    return requirements

setup(
    name="nethub-client",
    version="1.0.0",
    author="NetHub Development Team",
    author_email="dev@nethub.example.com",
    description="Terminal client for the NetHub TCP chat, UDP health and HTTP link services",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    url="https://github.com/example/nethub-client",
    packages=find_packages(exclude=['tests*']),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Communications :: Chat",
        "Topic :: Internet",
        "Topic :: System :: Networking",
        "Topic :: Terminals",
    ],
    python_requires=">=3.9",
    install_requires=[
        "rich>=13.0.0,<15.0",
        "requests>=2.28.0,<3.0",
    ],
    extras_require={
        "yaml": ["PyYAML>=6.0,<7.0"],
        "full": read_requirements('requirements-optional.txt'),
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "mypy>=1.0.0",
            "hypothesis>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "nethub-client=nethub.client.main:main",
        ],
    },
    include_package_data=True,
    project_urls={
        "Bug Reports": "https://github.com/example/nethub-client/issues",
        "Source": "https://github.com/example/nethub-client",
    },
    keywords="chat, networking, terminal, tcp, udp, http, health-check, link-checker",
    zip_safe=False,
)
