#!/usr/bin/env python3

import rclpy
from rclpy.node import Node
from rclpy.duration import Duration
from rclpy.logging import get_logger
from rclpy.qos import (
    QoSProfile,
    QoSReliabilityPolicy,
    QoSDurabilityPolicy,
    QoSHistoryPolicy,
)
from geometry_msgs.msg import PoseArray, Point
from visualization_msgs.msg import Marker, MarkerArray

from offboard_trajectory.errors import InvalidSpacing
from offboard_trajectory.trajectory_pipeline import PipelineConfig, TrajectoryPipeline
from offboard_trajectory.vertex import derivative_to_string
from offboard_trajectory.waypoint_buffer import WaypointBuffer


def to_marker_msg(marker):
    msg = Marker()
    msg.header.frame_id = marker.frame_id
    if not isinstance(marker.stamp, (int, float)):
        msg.header.stamp = marker.stamp
    msg.ns = marker.ns
    msg.id = marker.id
    msg.type = marker.type
    msg.action = marker.action
    msg.lifetime = Duration(seconds=marker.lifetime).to_msg()
    msg.pose.orientation.w = 1.0
    msg.scale.x, msg.scale.y, msg.scale.z = marker.scale
    msg.color.r, msg.color.g, msg.color.b, msg.color.a = marker.color
    msg.points = [Point(x=p[0], y=p[1], z=p[2]) for p in marker.points]
    return msg


def to_marker_array_msg(marker_array):
    msg = MarkerArray()
    msg.markers = [to_marker_msg(marker) for marker in marker_array.markers]
    return msg


def waypoints_from_pose_array(msg, altitude=0.0):
    """Planar waypoints, z is pinned to the configured altitude."""
    return [(pose.position.x, pose.position.y, altitude) for pose in msg.poses]


class WaypointTrajectoryNode(Node):
    def __init__(self):
        super().__init__("waypoint_node")

        # Declare and retrieve parameters
        self.declare_parameter("waypoint_topic", "/waypoints")
        self.declare_parameter("marker_topic", "trajectory_traject")
        self.declare_parameter("vertices_topic", "trajectory_vertices")
        self.declare_parameter("frame_id", "world")
        self.declare_parameter("publish_rate", 10.0)  # Hz
        self.declare_parameter("v_max", 1.0)  # m/s
        self.declare_parameter("a_max", 3.0)  # m/s^2
        self.declare_parameter("segment_time_method", "fabian")  # or velocity_ramp
        self.declare_parameter("magic_fabian_constant", 6.5)  # segment time tuning
        self.declare_parameter("derivative_to_optimize", 4)  # snap
        self.declare_parameter("endpoint_derivative", 2)  # acceleration
        self.declare_parameter("num_coefficients", 10)
        self.declare_parameter("sampling_interval", 0.01)  # s
        self.declare_parameter("max_samples", 100000)  # per trajectory
        self.declare_parameter("marker_distance", 1.6)  # m between pose markers
        self.declare_parameter("altitude", 0.0)

        self.waypoint_topic = (
            self.get_parameter("waypoint_topic").get_parameter_value().string_value
        )
        self.marker_topic = (
            self.get_parameter("marker_topic").get_parameter_value().string_value
        )
        self.vertices_topic = (
            self.get_parameter("vertices_topic").get_parameter_value().string_value
        )
        self.publish_rate = (
            self.get_parameter("publish_rate").get_parameter_value().double_value
        )
        self.altitude = self.get_parameter("altitude").get_parameter_value().double_value

        self.config = PipelineConfig(
            v_max=self.get_parameter("v_max").get_parameter_value().double_value,
            a_max=self.get_parameter("a_max").get_parameter_value().double_value,
            magic_fabian_constant=self.get_parameter("magic_fabian_constant")
            .get_parameter_value()
            .double_value,
            derivative_to_optimize=self.get_parameter("derivative_to_optimize")
            .get_parameter_value()
            .integer_value,
            endpoint_derivative=self.get_parameter("endpoint_derivative")
            .get_parameter_value()
            .integer_value,
            num_coefficients=self.get_parameter("num_coefficients")
            .get_parameter_value()
            .integer_value,
            sampling_interval=self.get_parameter("sampling_interval")
            .get_parameter_value()
            .double_value,
            marker_distance=self.get_parameter("marker_distance")
            .get_parameter_value()
            .double_value,
            frame_id=self.get_parameter("frame_id").get_parameter_value().string_value,
            segment_time_method=self.get_parameter("segment_time_method")
            .get_parameter_value()
            .string_value,
            max_samples=self.get_parameter("max_samples")
            .get_parameter_value()
            .integer_value,
        )
        # Invalid configuration is rejected here, before any subscription exists
        self.pipeline = TrajectoryPipeline(self.config, logger=self.get_logger())

        self.waypoints = WaypointBuffer()

        qos_profile_sub = QoSProfile(
            reliability=QoSReliabilityPolicy.RELIABLE,
            durability=QoSDurabilityPolicy.VOLATILE,
            history=QoSHistoryPolicy.KEEP_LAST,
            depth=10,
        )

        # Subscriptions
        self.waypoint_sub = self.create_subscription(
            PoseArray, self.waypoint_topic, self.waypoint_cb, qos_profile_sub
        )

        # Publishers
        self.marker_pub = self.create_publisher(MarkerArray, self.marker_topic, 10)
        self.vertices_pub = self.create_publisher(MarkerArray, self.vertices_topic, 10)

        timer_period = 1.0 / self.publish_rate
        self.timer = self.create_timer(timer_period, self.cmdloop_callback)

        self.get_logger().info("Waypoint trajectory node initialized with:")
        self.get_logger().info(f"  - Waypoints from: {self.waypoint_topic}")
        self.get_logger().info(f"  - Markers to: {self.marker_topic}, {self.vertices_topic}")
        self.get_logger().info(f"  - Publish rate: {self.publish_rate:.1f}Hz")
        self.get_logger().info(
            f"  - Limits: v_max={self.config.v_max}m/s, a_max={self.config.a_max}m/s^2, "
            f"segment times: {self.config.segment_time_method}, "
            f"magic constant={self.config.magic_fabian_constant}"
        )
        self.get_logger().info(
            f"  - Minimizing {derivative_to_string(self.config.derivative_to_optimize)}, "
            f"N={self.config.num_coefficients}"
        )
        self.get_logger().info(
            f"  - Marker distance: {self.config.marker_distance}m, "
            f"sampling interval: {self.config.sampling_interval}s"
        )

    def waypoint_cb(self, msg: PoseArray):
        self.waypoints.update(waypoints_from_pose_array(msg, self.altitude))
        self.get_logger().debug(f"Received {len(msg.poses)} waypoints")

    def cmdloop_callback(self):
        waypoints = self.waypoints.snapshot()
        result = self.pipeline.run_once(waypoints, self.get_clock().now().to_msg())
        if result is None:
            return

        self.marker_pub.publish(to_marker_array_msg(result.trajectory_markers))
        self.vertices_pub.publish(to_marker_array_msg(result.vertex_markers))


def main(args=None):
    rclpy.init(args=args)
    try:
        node = WaypointTrajectoryNode()
    except (InvalidSpacing, ValueError) as e:
        get_logger("waypoint_node").error(
            f"Invalid waypoint node configuration: {e}"
        )
        rclpy.shutdown()
        return

    try:
        rclpy.spin(node)
    except KeyboardInterrupt:
        node.get_logger().info("Shutting down...")
    finally:
        node.destroy_node()
        if rclpy.ok():
            rclpy.shutdown()


if __name__ == "__main__":
    main()
