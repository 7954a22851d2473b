from .mock_smu import MockSMU

__all__ = ["MockSMU"]
