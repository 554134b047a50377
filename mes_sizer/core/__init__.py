"""
Core modules for MES Sizer.

This package contains the module catalog and the storage and compute
estimators, plus the display formatting shared by every front end.
"""
