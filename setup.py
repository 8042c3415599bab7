from setuptools import setup

package_name = 'dmp_bbo'

setup(
    name=package_name,
    version='0.1.0',
    packages=[
        package_name,
        f'{package_name}.function_approximators',
        f'{package_name}.dynamical_systems',
        f'{package_name}.dmp',
        f'{package_name}.bbo',
        f'{package_name}.dmp_bbo',
    ],
    package_dir={
        package_name: 'src',
        f'{package_name}.function_approximators': 'src/function_approximators',
        f'{package_name}.dynamical_systems': 'src/dynamical_systems',
        f'{package_name}.dmp': 'src/dmp',
        f'{package_name}.bbo': 'src/bbo',
        f'{package_name}.dmp_bbo': 'src/dmp_bbo',
    },
    python_requires='>=3.10',
    install_requires=['setuptools', 'numpy', 'scipy', 'tyro'],
    tests_require=['pytest'],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    maintainer='root',
    maintainer_email='franche1984@gmail.com',
    description='Dynamical movement primitives tuned by black-box distribution-based optimization',
    license='MIT',
    entry_points={
        'console_scripts': [
            'dmp_bbo = dmp_bbo.cli:entry_point',
        ],
    },
)
