"""EasyDoor package.

Building access and workforce backend: users, companies, offices, service cards,
visits and attendance. Each feature module keeps the same layering
(model -> repository protocol -> MySQL repository -> service -> Flask controller).
"""
