# -*- coding: utf-8 -*-
import codecs
from setuptools import setup, find_packages


tests_require = [
    'pytest>=6.0',
]

setup(
    name='Restmount',
    version='0.1.0',
    packages=find_packages(exclude=['*tests*']),
    license='MIT',
    description='Typed, versioned resources for Shopify-style REST admin APIs',
    long_description=codecs.open('README.rst', encoding='utf-8').read(),
    tests_require=tests_require,
    python_requires='>=3.7',
    install_requires=[
        'Flask>=2.0',
        'jsonschema>=3.2.0',
        'aniso8601>=0.84',
        'blinker>=1.3',
        'requests>=2.20',
        'rfc3987'
    ],
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Internet :: WWW/HTTP',
        'Topic :: Software Development :: Libraries :: Python Modules'
    ],
    zip_safe=False,
    extras_require={
        'tests': tests_require,
    }
)
