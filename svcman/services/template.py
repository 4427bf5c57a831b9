"""Config templates written by `svcman init`."""

CONFIG_TEMPLATE = """\
# svcman configuration
# Services are installed as systemd units (Linux) or launch agents (macOS).

apps:
  # Example API service
  api:
    cwd: .
    command: python -m http.server 8080
    env:
      PYTHONUNBUFFERED: "1"
    # user: www-data
    # group: www-data
    # limits:
    #   memory: 512   # MB
    #   cpu: 50       # percent of one core

  # Example worker service
  # worker:
  #   cwd: apps/worker
  #   command: python -m worker
  #   env:
  #     PYTHONUNBUFFERED: "1"

# Global defaults applied to all apps
# defaults:
#   restart: always
#   restart_sec: 3

# systemd settings
# systemd:
#   prefix: svcman-
#   user_mode: false
"""

CONFIG_TEMPLATE_MINIMAL = """\
apps:
  api:
    cwd: .
    command: python -m http.server 8080
"""
