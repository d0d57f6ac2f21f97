import sys
from pathlib import Path
from setuptools import setup, find_packages
from typing import Optional

if sys.version_info.major != 3:
    raise RuntimeError("This package requires Python 3+")

pkg_name = 'kvfactory'
gitrepo = 'trisongz/kvfactory'
root = Path(__file__).parent
version = root.joinpath('kvfactory/version.py').read_text().split('VERSION = ', 1)[-1].strip().replace('-', '').replace("'", '')


def get_requirements(
    name: Optional[str] = None,
):
    """
    Get the requirements from the `requirements` folder
    """
    if name: name = f'requirements.{name}' if 'requirements' not in name else name
    else: name = 'requirements'
    base_path = root
    if not name.endswith('.txt'): name = f'{name}.txt'
    text_lines = base_path.joinpath(name).read_text().splitlines()
    return [line.strip() for line in text_lines if ('#' not in line[:5] and line.strip())]

requirements = get_requirements()

args = {
    'packages': find_packages(
        include=[
            "kvfactory",
            "kvfactory.*",
        ]
    ),
    'install_requires': requirements,
    'include_package_data': True,
    'long_description': root.joinpath('README.md').read_text(encoding='utf-8'),
    'entry_points': {
        'console_scripts': [
            'kvfactory = kvfactory.cli:main',
        ],
    },
    'extras_require': {
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    'project_urls': {
        "Code": f"https://github.com/{gitrepo}",
    },
}


setup(
    name=pkg_name,
    version=version,
    url=f'https://github.com/{gitrepo}',
    license='MIT Style',
    description='Async connection factory for Redis-compatible key-value servers',
    author='Tri Songz',
    author_email='ts@growthengineai.com',
    long_description_content_type="text/markdown",
    python_requires='>=3.8',
    classifiers=[
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.8',
        'Topic :: Software Development :: Libraries',
    ],
    **args
)
