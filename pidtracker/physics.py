"""
Physics Primitives for the Sensor Array Tracker

This module provides the kinematic building blocks used by the control loop:
- 2D vector operations
- A point mass integrated with explicit Euler steps

Key concepts:
- Immutable value types for positions and velocities
- Velocity integrates acceleration, position integrates velocity
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Vector2D:
    """Immutable 2D vector for positions, directions and velocities"""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: 'Vector2D') -> 'Vector2D':
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Vector2D') -> 'Vector2D':
        return Vector2D(self.x - other.x, self.y - other.y)

    def __neg__(self) -> 'Vector2D':
        return Vector2D(-self.x, -self.y)

    def __mul__(self, scalar: float) -> 'Vector2D':
        return Vector2D(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> 'Vector2D':
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> 'Vector2D':
        return Vector2D(self.x / scalar, self.y / scalar)

    def magnitude_squared(self) -> float:
        """Squared length, avoids the square root when only ordering matters"""
        return self.x * self.x + self.y * self.y

    def magnitude(self) -> float:
        """Calculate the magnitude (length) of the vector"""
        return math.sqrt(self.magnitude_squared())

    def normalize(self) -> 'Vector2D':
        """Return a normalized (unit) vector"""
        mag = self.magnitude()
        if mag == 0:
            return Vector2D(0.0, 0.0)
        return Vector2D(self.x / mag, self.y / mag)

    def dot(self, other: 'Vector2D') -> float:
        """Calculate dot product with another vector"""
        return self.x * other.x + self.y * other.y

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def __repr__(self):
        return f"Vector2D({self.x:.2f}, {self.y:.2f})"


def require_finite_vector(name: str, vector: Vector2D) -> Vector2D:
    """Reject NaN/inf coordinates before they reach an integrator."""
    if not isinstance(vector, Vector2D):
        raise ValueError(f"{name} must be a Vector2D, got {type(vector).__name__}")
    if not vector.is_finite():
        raise ValueError(f"{name} must have finite coordinates, got {vector!r}")
    return vector


class PointMass:
    """
    A massless-point body moved by commanded accelerations

    The sensor array carries no inertia model of its own: controller outputs
    are treated directly as accelerations. Integration is explicit Euler,
    velocity first and then position with the updated velocity.
    """

    def __init__(self, position: Vector2D, velocity: Vector2D = Vector2D(0.0, 0.0)):
        self.position = require_finite_vector("position", position)
        self.velocity = require_finite_vector("velocity", velocity)

    def integrate(self, acceleration: Vector2D, dt: float):
        """Advance velocity and position by one time step"""
        self.velocity = self.velocity + acceleration * dt
        self.position = self.position + self.velocity * dt

    def teleport(self, position: Vector2D, velocity: Vector2D = Vector2D(0.0, 0.0)):
        """Place the body at a new position, discarding its motion"""
        self.position = require_finite_vector("position", position)
        self.velocity = require_finite_vector("velocity", velocity)

    def speed(self) -> float:
        return self.velocity.magnitude()

    def __repr__(self):
        return f"PointMass(pos=({self.position.x:.1f}, {self.position.y:.1f}), speed={self.speed():.1f})"
