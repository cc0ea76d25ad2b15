"""Configuration module for RemoteOps.

Provides focused classes for different configuration concerns:
- Config: Main configuration class (aggregates all components)
- SSHConfigParser: Resolves ~/.ssh/config entries for a target host
- HostKeyVerifier: Manages SSH host key verification
- Settings: Environment variable configuration
"""

from remoteops.config.host_keys import HostKeyVerifier
from remoteops.config.main import Config
from remoteops.config.parser import SSHConfigEntry, SSHConfigParser
from remoteops.config.settings import Settings

__all__ = ["Config", "HostKeyVerifier", "Settings", "SSHConfigEntry", "SSHConfigParser"]
