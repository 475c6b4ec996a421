"""
brick-sync Configuration Module

This module handles configuration loading and validation. It supports
YAML-based configuration with environment variable overrides.

Author: brick-sync Project
License: MIT
"""
