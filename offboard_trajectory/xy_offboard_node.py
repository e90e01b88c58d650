#!/usr/bin/env python3

import rclpy
from geometry_msgs.msg import PoseStamped

from offboard_trajectory.mavros_offboard import MavrosOffboardNode
from offboard_trajectory.offboard_sequencer import ARM_FIRST
from offboard_trajectory.paths import circle_setpoint, sine_setpoint


class XYOffboardNode(MavrosOffboardNode):
    """Flies a planar path from position setpoints once armed and in OFFBOARD."""

    def __init__(self):
        super().__init__("xy_offb_node", ARM_FIRST, warmup_ticks=0)

        self.declare_parameter("path", "sine")
        self.declare_parameter("altitude", 2.0)
        self.declare_parameter("amplitude", 6.0)
        self.declare_parameter("half_wavelength", 6.0)
        self.declare_parameter("radius", 0.5)
        self.declare_parameter("theta_step", 0.01)
        self.declare_parameter("rate", 20.0)  # must stay above 2Hz for PX4
        self.declare_parameter("warmup_setpoints", 250)

        self.path_name = self.get_parameter("path").get_parameter_value().string_value
        if self.path_name not in ("sine", "circle"):
            raise ValueError(f"Unknown path '{self.path_name}', expected sine or circle")
        self.altitude = (
            self.get_parameter("altitude").get_parameter_value().double_value
        )
        self.amplitude = (
            self.get_parameter("amplitude").get_parameter_value().double_value
        )
        self.half_wavelength = (
            self.get_parameter("half_wavelength").get_parameter_value().double_value
        )
        self.radius = self.get_parameter("radius").get_parameter_value().double_value
        self.theta_step = (
            self.get_parameter("theta_step").get_parameter_value().double_value
        )
        rate = self.get_parameter("rate").get_parameter_value().double_value
        # Setpoints streamed before the first arm / mode request
        self.sequencer.warmup_ticks = (
            self.get_parameter("warmup_setpoints").get_parameter_value().integer_value
        )

        # Publisher for local position setpoints
        self.local_pos_pub = self.create_publisher(
            PoseStamped, "/mavros/setpoint_position/local", 10
        )

        # Timer for publishing setpoints
        self.timer_period = 1.0 / rate
        self.timer = self.create_timer(self.timer_period, self.cmdloop_callback)

        self.theta = 0.0

        self.get_logger().info(
            f"XY offboard node: path={self.path_name}, altitude={self.altitude}m, "
            f"rate={rate:.1f}Hz, warmup={self.sequencer.warmup_ticks} setpoints"
        )

    def path_setpoint(self):
        if self.path_name == "sine":
            return sine_setpoint(self.theta, self.amplitude, self.half_wavelength)
        return circle_setpoint(self.theta, self.radius)

    def cmdloop_callback(self):
        if not self.current_state.connected:
            # wait for FCU connection
            return

        self.step_offboard()

        pose = PoseStamped()
        pose.header.frame_id = "map"
        pose.header.stamp = self.get_clock().now().to_msg()
        pose.pose.position.z = self.altitude

        if self.sequencer.active:
            x, y = self.path_setpoint()
            pose.pose.position.x = x
            pose.pose.position.y = y
            self.theta += self.theta_step
            self.get_logger().debug(f"Value of x = {x:.3f}, Value of y = {y:.3f}")

        self.local_pos_pub.publish(pose)


def main(args=None):
    rclpy.init(args=args)
    node = XYOffboardNode()
    try:
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    node.destroy_node()
    rclpy.shutdown()


if __name__ == "__main__":
    main()
