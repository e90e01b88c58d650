import os

from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description():
    default_config = os.path.join(
        get_package_share_directory('offboard_trajectory'),
        'config',
        'waypoint_trajectory.yaml'
    )

    return LaunchDescription([
        DeclareLaunchArgument(
            'config_file',
            default_value=default_config,
            description='Waypoint trajectory parameter file'
        ),
        DeclareLaunchArgument(
            'waypoint_topic',
            default_value='/waypoints',
            description='geometry_msgs/PoseArray topic with the waypoints'
        ),

        # Minimum-snap trajectory through the latest waypoints, drawn in RViz
        Node(
            package='offboard_trajectory',
            executable='waypoint_node',
            name='waypoint_node',
            output='screen',
            parameters=[
                LaunchConfiguration('config_file'),
                {'waypoint_topic': LaunchConfiguration('waypoint_topic')},
            ],
        ),
    ])
