"""
deploykit — detection-rule and command synthesis for endpoint-managed app deployment.
"""

__version__ = "0.1.0"
