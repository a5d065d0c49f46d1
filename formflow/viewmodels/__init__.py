"""ViewModel package for form render state.

Call context:
    ``formflow/app/submission_controller.py`` drives ``FormVM`` through the
    submission phases; views (or tests) read its fields to render.

Dependencies:
    Modules in this package depend on domain types only. Handler dispatch and
    persistence remain outside.
"""
