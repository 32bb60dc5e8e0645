"""HTTP layer for school-commons: application factory and dependencies.

Import `school_commons.api.app.create_app` to build the application.
"""
