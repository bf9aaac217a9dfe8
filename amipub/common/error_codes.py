"""
Process exit codes used by the command line interface.
"""

ERR_CONFIG_INVALID = 2
ERR_FILE_NOT_FOUND = 10
ERR_AWS_CLIENT_INIT_FAILED = 20
ERR_AWS_CREDENTIALS_NOT_FOUND = 21
ERR_MACHINE_IMAGE_FAILED = 30
ERR_PUBLISH_FAILED = 40
