"""
AprilTag victim detector node
Import TagDetectorNode from ros_nodes.tag_detector.tag_detector_node (requires ROS2)
"""
