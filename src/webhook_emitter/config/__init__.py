"""
Package: config
Description: Environment driven settings for the webhook emitter.
"""
