"""Particle integration shared between a CPU simulation and a compute shader.

The `particles` unit holds the particle struct, its integration step and a
verbatim compute entry point. Running this file simulates a few particles on
the CPU with the very same code.

To translate:
    py2hlsl examples/particles.py examples/noise.py -o shaders --no-compile
    # GLSL output, compiled with glslc
    py2hlsl examples/ -o shaders --target glsl
"""

import math
from enum import IntEnum

from py2hlsl import FALSE, TRUE, Bool, Float3, Ref, float32, int32, is_true, uint32

# py2hlsl: start particles
GRAVITY: float32 = -9.81
MAX_STEPS: int32 = 8


class Phase(IntEnum):
    """Lifecycle of a particle."""

    ALIVE = 0
    DEAD = 1


class Particle:
    """A point mass with a lifetime."""

    pos: Float3
    age: float32
    vel: Float3
    phase: Phase
    active: Bool
    seed: uint32
    pad0: float32
    pad1: float32

    def defaults(self) -> None:
        self.age = 0.0
        self.active = TRUE

    def step(self, dt: float32) -> None:
        """Integrate one time step."""
        self.vel.y += GRAVITY * dt
        self.pos = self.pos + self.vel * dt
        self.age += dt
        if self.pos.y < 0.0:
            self.pos.y = 0.0
            self.vel.y = -self.vel.y * 0.5

    def speed(self) -> float32:
        return math.sqrt(self.vel.x**2 + self.vel.y**2 + self.vel.z**2)


def advance(p: Ref[Particle], dt: float32, lifetime: float32) -> None:
    """Run sub-steps and retire old particles."""
    if not is_true(p.active):
        return
    sub = dt / MAX_STEPS
    for i in range(MAX_STEPS):
        p.step(sub)
    if p.age > lifetime:
        p.phase = Phase.DEAD
        p.active = FALSE
# py2hlsl: end

# py2hlsl: hlsl particles
"""
RWStructuredBuffer<Particle> particles : register(u0);

[numthreads(64, 1, 1)]
void main(uint3 id : SV_DispatchThreadID) {
    advance(particles[id.x], 0.016, 10.0);
}
"""
# py2hlsl: end


def main() -> None:
    p = Particle()
    p.pos = Float3(0.0, 10.0, 0.0)
    p.vel = Float3(1.0, 0.0, 0.0)
    p.phase = Phase.ALIVE
    p.defaults()
    for frame in range(5):
        advance(p, 0.1, 10.0)
        print(f"frame {frame}: pos={p.pos} speed={p.speed():.3f}")


if __name__ == "__main__":
    main()
