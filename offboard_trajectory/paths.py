#!/usr/bin/env python3

import math


def sine_setpoint(theta, amplitude=6.0, half_wavelength=6.0):
    """Point on y = A sin(pi x / half_wavelength), advancing along x."""
    return theta, amplitude * math.sin(theta * math.pi / half_wavelength)


def circle_setpoint(theta, radius=0.5):
    return radius * math.cos(theta), radius * math.sin(theta)
