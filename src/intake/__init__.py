"""
Intake package: form normalization and validation shared with the proxy,
and the form controller that drives the inspection and verification pages.
"""
