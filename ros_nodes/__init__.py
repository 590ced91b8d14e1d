"""
ROS2 nodes and node components
"""
