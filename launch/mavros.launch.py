from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument, IncludeLaunchDescription
from launch.launch_description_sources import AnyLaunchDescriptionSource
from launch.substitutions import LaunchConfiguration, PathJoinSubstitution
from launch_ros.substitutions import FindPackageShare


def generate_launch_description():
    return LaunchDescription([
        DeclareLaunchArgument(
            'fcu_url',
            default_value='udp://:14540@127.0.0.1:14557',
            description='FCU connection URL (PX4 SITL by default)'
        ),
        DeclareLaunchArgument(
            'gcs_url',
            default_value='',
            description='GCS connection URL'
        ),

        # Launch MAVROS using standard px4.launch
        IncludeLaunchDescription(
            AnyLaunchDescriptionSource([
                PathJoinSubstitution([
                    FindPackageShare('mavros'),
                    'launch',
                    'px4.launch'
                ])
            ]),
            launch_arguments={
                'fcu_url': LaunchConfiguration('fcu_url'),
                'gcs_url': LaunchConfiguration('gcs_url'),
            }.items()
        ),
    ])
