"""Test package marker for the cfgyaml suites.

What:
  Marks ``tests`` as a package so pytest can resolve ``tests.unit`` and
  ``tests.e2e`` modules unambiguously.

Interfaces:
  No public interfaces are defined here.

Invariants & Safety:
  - The file must stay side-effect free.
"""
