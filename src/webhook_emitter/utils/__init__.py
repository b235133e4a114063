"""
Package: utils
Description: Logging, metrics, errors and scope filtering helpers.
"""
