from setuptools import setup
import os
from glob import glob

package_name = 'offboard_trajectory'

setup(
    name=package_name,
    version='0.0.1',
    packages=[package_name],
    data_files=[
        ('share/ament_index/resource_index/packages',
            ['resource/' + package_name]),
        ('share/' + package_name, ['package.xml']),
        (os.path.join('share', package_name, 'launch'), glob(os.path.join('launch', '*.launch.py'))),
        (os.path.join('share', package_name, 'config'), glob(os.path.join('config', '*.yaml'))),
    ],
    install_requires=['setuptools', 'numpy', 'scipy'],
    zip_safe=True,
    maintainer='maintainer',
    maintainer_email='user@example.com',
    description='MAVROS offboard examples and minimum-snap waypoint trajectory visualization',
    license='Apache-2.0',
    tests_require=['pytest'],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'waypoint_node = offboard_trajectory.waypoint_node:main',
            'xy_offb_node = offboard_trajectory.xy_offboard_node:main',
            'actuator_ctrl = offboard_trajectory.actuator_control_node:main',
        ],
    },
)
