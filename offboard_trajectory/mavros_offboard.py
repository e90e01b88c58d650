#!/usr/bin/env python3

from rclpy.node import Node
from rclpy.qos import QoSProfile, QoSReliabilityPolicy
from mavros_msgs.msg import State
from mavros_msgs.srv import CommandBool, SetMode

from offboard_trajectory.offboard_sequencer import (
    OFFBOARD_MODE,
    OffboardSequencer,
    Request,
)


class MavrosOffboardNode(Node):
    """MAVROS state subscription and arm / set-mode service clients.

    Subclasses call step_offboard() once per control tick and check
    self.sequencer.active before streaming their real setpoints.
    """

    def __init__(self, node_name, order, warmup_ticks):
        super().__init__(node_name)

        self.declare_parameter("request_interval", 5.0)
        request_interval = (
            self.get_parameter("request_interval").get_parameter_value().double_value
        )
        self.sequencer = OffboardSequencer(
            order=order,
            request_interval=request_interval,
            warmup_ticks=warmup_ticks,
        )

        # State subscriber
        qos = QoSProfile(depth=10, reliability=QoSReliabilityPolicy.BEST_EFFORT)
        self.state_sub = self.create_subscription(
            State, "/mavros/state", self.state_cb, qos
        )
        self.current_state = State()

        # Service clients
        self.arming_client = self.create_client(CommandBool, "/mavros/cmd/arming")
        self.set_mode_client = self.create_client(SetMode, "/mavros/set_mode")

    def state_cb(self, msg):
        prev_state = self.current_state
        self.current_state = msg
        self.sequencer.update_vehicle_state(msg.connected, msg.armed, msg.mode)

        if prev_state.connected != msg.connected:
            self.get_logger().info(
                f'FCU {"connected" if msg.connected else "disconnected"}'
            )
        if prev_state.mode != msg.mode:
            self.get_logger().info(f"Mode changed: {prev_state.mode} → {msg.mode}")
        if prev_state.armed != msg.armed:
            self.get_logger().info(f'Vehicle: {"ARMED" if msg.armed else "DISARMED"}')

    def step_offboard(self):
        now = self.get_clock().now().nanoseconds / 1e9
        request = self.sequencer.step(now)
        if request == Request.ARM:
            self.arm()
        elif request == Request.SET_OFFBOARD:
            self.set_mode(OFFBOARD_MODE)
        return request

    def arm(self):
        if not self.arming_client.service_is_ready():
            self.get_logger().warning("Arming service not ready")
            return
        req = CommandBool.Request()
        req.value = True
        future = self.arming_client.call_async(req)
        future.add_done_callback(self.arm_done_cb)
        self.get_logger().info("Arming request sent")

    def arm_done_cb(self, future):
        response = future.result()
        if response is not None and response.success:
            self.get_logger().info("Vehicle armed")
        else:
            self.get_logger().warning("Arming request rejected")

    def set_mode(self, mode):
        if not self.set_mode_client.service_is_ready():
            self.get_logger().warning("SetMode service not ready")
            return
        req = SetMode.Request()
        req.custom_mode = mode
        future = self.set_mode_client.call_async(req)
        future.add_done_callback(self.set_mode_done_cb)
        self.get_logger().info(f"Mode change request: {mode}")

    def set_mode_done_cb(self, future):
        response = future.result()
        if response is not None and response.mode_sent:
            self.get_logger().info("Offboard enabled")
        else:
            self.get_logger().warning("Mode change request rejected")
