#!/usr/bin/env python3

import rclpy
from mavros_msgs.msg import ActuatorControl

from offboard_trajectory.mavros_offboard import MavrosOffboardNode
from offboard_trajectory.offboard_sequencer import MODE_FIRST

# Roll, pitch, yaw moments and thrust for control group 0
DEFAULT_CONTROLS = [-0.00645824, -0.186406, -0.00037194, 4.53587, 0.0, 3.0, 0.0, 0.0]


class ActuatorControlNode(MavrosOffboardNode):
    """Streams a fixed actuator control group, switching to OFFBOARD then arming."""

    def __init__(self):
        super().__init__("actuator_ctrl", MODE_FIRST, warmup_ticks=0)

        self.declare_parameter("rate", 250.0)
        self.declare_parameter("group_mix", 0)
        self.declare_parameter("controls", DEFAULT_CONTROLS)

        rate = self.get_parameter("rate").get_parameter_value().double_value
        self.group_mix = (
            self.get_parameter("group_mix").get_parameter_value().integer_value
        )
        controls = (
            self.get_parameter("controls").get_parameter_value().double_array_value
        )
        if len(controls) != 8:
            raise ValueError(f"Expected 8 actuator controls, got {len(controls)}")
        self.controls = [float(c) for c in controls]

        self.actuator_control_pub = self.create_publisher(
            ActuatorControl, "/mavros/actuator_control", 10
        )

        self.timer = self.create_timer(1.0 / rate, self.cmdloop_callback)

        self.get_logger().info(
            f"Actuator control node: rate={rate:.1f}Hz, group={self.group_mix}, "
            f"controls={self.controls}"
        )

    def cmdloop_callback(self):
        if not self.current_state.connected:
            return

        self.step_offboard()

        msg = ActuatorControl()
        msg.header.stamp = self.get_clock().now().to_msg()
        msg.group_mix = self.group_mix
        msg.controls = self.controls
        self.actuator_control_pub.publish(msg)


def main(args=None):
    rclpy.init(args=args)
    node = ActuatorControlNode()
    try:
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    node.destroy_node()
    rclpy.shutdown()


if __name__ == "__main__":
    main()
