"""
Core tag tracking logic: detection memory, events and handlers
Independent of ROS so it can be exercised directly in tests
"""
