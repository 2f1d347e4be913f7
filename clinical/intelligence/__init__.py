"""Pure clinical computation: NEWS2 scoring, drug safety rules, alert transitions and risk ordering.

Nothing here touches the database.
"""
