import pytest

from offboard_trajectory.offboard_sequencer import (
    ARM_FIRST,
    MODE_FIRST,
    FlightState,
    OffboardSequencer,
    Request,
)


def test_nothing_requested_while_disconnected():
    sequencer = OffboardSequencer()
    assert sequencer.step(0.0) is None
    assert sequencer.state == FlightState.DISCONNECTED


def test_arm_first_sequence():
    sequencer = OffboardSequencer(order=ARM_FIRST, request_interval=5.0)
    sequencer.update_vehicle_state(connected=True, armed=False, mode="MANUAL")

    assert sequencer.step(0.0) == Request.ARM
    assert sequencer.state == FlightState.ARMING
    # Retries are rate limited
    assert sequencer.step(1.0) is None
    assert sequencer.step(5.0) == Request.ARM

    sequencer.update_vehicle_state(connected=True, armed=True, mode="MANUAL")
    assert sequencer.step(7.0) is None
    assert sequencer.step(10.0) == Request.SET_OFFBOARD
    assert sequencer.state == FlightState.SWITCHING_MODE

    sequencer.update_vehicle_state(connected=True, armed=True, mode="OFFBOARD")
    assert sequencer.step(20.0) is None
    assert sequencer.active


def test_mode_first_sequence():
    sequencer = OffboardSequencer(order=MODE_FIRST)
    sequencer.update_vehicle_state(connected=True, armed=False, mode="MANUAL")
    assert sequencer.step(0.0) == Request.SET_OFFBOARD

    sequencer.update_vehicle_state(connected=True, armed=False, mode="OFFBOARD")
    assert sequencer.step(5.0) == Request.ARM
    assert sequencer.state == FlightState.ARMING


def test_warmup_delays_first_request():
    sequencer = OffboardSequencer(warmup_ticks=3)
    sequencer.update_vehicle_state(connected=True, armed=False, mode="MANUAL")
    assert sequencer.step(0.0) is None
    assert sequencer.state == FlightState.CONNECTING
    assert sequencer.step(0.05) is None
    assert sequencer.step(0.10) == Request.ARM


def test_connection_loss_leaves_active():
    sequencer = OffboardSequencer()
    sequencer.update_vehicle_state(connected=True, armed=True, mode="OFFBOARD")
    sequencer.step(0.0)
    assert sequencer.active

    sequencer.update_vehicle_state(connected=False, armed=True, mode="OFFBOARD")
    sequencer.step(1.0)
    assert sequencer.state == FlightState.DISCONNECTED
    assert not sequencer.active


def test_unknown_order_rejected():
    with pytest.raises(ValueError):
        OffboardSequencer(order="sideways")
