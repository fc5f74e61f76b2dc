"""Hash-based value noise as an include-only shader unit.

The `noise` unit has no entry point; other shaders include the generated
`noise.hlsl`.
"""

import numpy as np

from py2hlsl import Float2, float32

# py2hlsl: start noise
def hash21(p: Float2) -> float32:
    """Pseudo-random value in [0, 1) for a 2D cell."""
    h = np.sin(p.x * 127.1 + p.y * 311.7) * 43758.5453
    return h - np.floor(h)


def smooth(t: float32) -> float32:
    return t * t * (3.0 - 2.0 * t)


def value_noise(p: Float2) -> float32:
    i = Float2(np.floor(p.x), np.floor(p.y))
    fx = smooth(p.x - i.x)
    fy = smooth(p.y - i.y)
    a = hash21(i)
    b = hash21(i + Float2(1.0, 0.0))
    c = hash21(i + Float2(0.0, 1.0))
    d = hash21(i + Float2(1.0, 1.0))
    top = a + (b - a) * fx
    bottom = c + (d - c) * fx
    return top + (bottom - top) * fy
# py2hlsl: end


if __name__ == "__main__":
    for x in range(4):
        print(value_noise(Float2(x * 0.37, 1.5)))
