"""Launch file for the AprilTag detector node"""

from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument, ExecuteProcess
from launch.substitutions import LaunchConfiguration


def generate_launch_description():
    return LaunchDescription(
        [
            DeclareLaunchArgument(
                "config",
                default_value="default",
                description="Config name under configs/ or path to a YAML file",
            ),
            DeclareLaunchArgument(
                "log_level",
                default_value="INFO",
                description="Logging level",
            ),
            ExecuteProcess(
                cmd=[
                    "tag-detector",
                    "--config",
                    LaunchConfiguration("config"),
                    "--log-level",
                    LaunchConfiguration("log_level"),
                ],
                name="tag_detector",
                output="screen",
            ),
        ]
    )
