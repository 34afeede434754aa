"""
Session Layer - Caller-Facing Fracture Capture

Submodules:
    capture_session.py → FractureCaptureSession

Dependency Rule:
    This layer depends on: core, taxonomy, cascade, generation, validation
"""

from ao_hand_codec.session.capture_session import FractureCaptureSession

__all__ = [
    "FractureCaptureSession",
]
