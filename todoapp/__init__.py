"""
Todo App - сессионный REST API задач и клиентское состояние авторизации
"""

__version__ = "2.0.0"
