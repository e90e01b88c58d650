#!/usr/bin/env python3

"""
Arm / OFFBOARD sequencing for the MAVROS example nodes.

The sequencer only decides which request to send next; the node owns the
service clients and reports back whether a request was accepted.
"""

from enum import Enum

OFFBOARD_MODE = "OFFBOARD"

ARM_FIRST = "arm_first"
MODE_FIRST = "mode_first"


class FlightState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    ARMING = "arming"
    SWITCHING_MODE = "switching_mode"
    ACTIVE = "active"


class Request(Enum):
    ARM = "arm"
    SET_OFFBOARD = "set_offboard"


class OffboardSequencer:
    def __init__(self, order=ARM_FIRST, request_interval=5.0, warmup_ticks=0):
        if order not in (ARM_FIRST, MODE_FIRST):
            raise ValueError(f"Unknown sequencing order: {order}")
        self.order = order
        self.request_interval = request_interval
        self.warmup_ticks = warmup_ticks

        self.state = FlightState.DISCONNECTED
        self.ticks = 0
        self.last_request_time = None
        self.connected = False
        self.armed = False
        self.mode = ""

    @property
    def active(self):
        return self.state == FlightState.ACTIVE

    def update_vehicle_state(self, connected, armed, mode):
        self.connected = connected
        self.armed = armed
        self.mode = mode

    def _next_state(self):
        if not self.connected:
            return FlightState.DISCONNECTED
        if self.ticks < self.warmup_ticks:
            return FlightState.CONNECTING

        offboard = self.mode == OFFBOARD_MODE
        if self.armed and offboard:
            return FlightState.ACTIVE
        if self.order == ARM_FIRST:
            return FlightState.ARMING if not self.armed else FlightState.SWITCHING_MODE
        return FlightState.SWITCHING_MODE if not offboard else FlightState.ARMING

    def step(self, now):
        """Advance one tick; return the request to send, if any.

        now is in seconds. Requests are spaced by at least request_interval.
        """
        self.ticks += 1
        self.state = self._next_state()

        if self.state not in (FlightState.ARMING, FlightState.SWITCHING_MODE):
            return None
        if (
            self.last_request_time is not None
            and now - self.last_request_time < self.request_interval
        ):
            return None

        self.last_request_time = now
        if self.state == FlightState.ARMING:
            return Request.ARM
        return Request.SET_OFFBOARD
