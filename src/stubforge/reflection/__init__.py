from .descriptor import DescriptorReflector
from .griffe_builder import GriffeModelBuilder

__all__ = ["DescriptorReflector", "GriffeModelBuilder"]
