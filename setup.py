"""
Packaging for btlink. Tests run with `pytest` after `pip install -e .[test]`.
The BlueZ platform needs the `bluez` extra (PyBluez and dbus-python, which build against
the BlueZ and D-Bus development headers).
"""

from setuptools import setup


setup(
    name='btlink-connector-py',
    version='0.0.1',
    description='A single Bluetooth RFCOMM serial link, as a client of a paired peer or as a one-peer server.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['btlink', 'btlink.conduit', 'btlink.config', 'btlink.connector',
              'btlink.platform', 'btlink.support'],
    package_data={'btlink': ['*.cfg']},
    python_requires='>=3.6',
    install_requires=[
        'configobj',
    ],
    extras_require={
        'bluez': ['PyBluez', 'dbus-python'],
        'test': ['pytest', 'PyHamcrest', 'timeout-decorator'],
    },
    zip_safe=False,
)
