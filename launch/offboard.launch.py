from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument, IncludeLaunchDescription
from launch.conditions import IfCondition, LaunchConfigurationEquals
from launch.launch_description_sources import PythonLaunchDescriptionSource
from launch.substitutions import LaunchConfiguration, PathJoinSubstitution
from launch_ros.actions import Node
from launch_ros.substitutions import FindPackageShare


def generate_launch_description():
    return LaunchDescription([
        DeclareLaunchArgument(
            'controller',
            default_value='xy',
            choices=['xy', 'actuator'],
            description='Position setpoint path (xy) or fixed actuator controls (actuator)'
        ),
        DeclareLaunchArgument(
            'path',
            default_value='sine',
            choices=['sine', 'circle'],
            description='Planar path flown by the xy controller'
        ),
        DeclareLaunchArgument(
            'altitude',
            default_value='2.0',
            description='Setpoint altitude in meters'
        ),
        DeclareLaunchArgument(
            'launch_mavros',
            default_value='true',
            choices=['true', 'false'],
            description='Also start MAVROS'
        ),
        DeclareLaunchArgument(
            'fcu_url',
            default_value='udp://:14540@127.0.0.1:14557',
            description='FCU connection URL'
        ),

        IncludeLaunchDescription(
            PythonLaunchDescriptionSource([
                PathJoinSubstitution([
                    FindPackageShare('offboard_trajectory'),
                    'launch',
                    'mavros.launch.py'
                ])
            ]),
            launch_arguments={'fcu_url': LaunchConfiguration('fcu_url')}.items(),
            condition=IfCondition(LaunchConfiguration('launch_mavros')),
        ),

        # Sine / circle position setpoints
        Node(
            package='offboard_trajectory',
            executable='xy_offb_node',
            name='xy_offb_node',
            output='screen',
            parameters=[
                {'path': LaunchConfiguration('path')},
                {'altitude': LaunchConfiguration('altitude')},
            ],
            condition=LaunchConfigurationEquals('controller', 'xy'),
        ),

        # Fixed actuator control group
        Node(
            package='offboard_trajectory',
            executable='actuator_ctrl',
            name='actuator_ctrl',
            output='screen',
            condition=LaunchConfigurationEquals('controller', 'actuator'),
        ),
    ])
