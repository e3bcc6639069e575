"""File upload to the router over SSH (SFTP)."""

import logging
import socket
from pathlib import Path
from typing import Any, Optional

import paramiko

from .config import Settings
from .exceptions import AuthError, TransferError

logger = logging.getLogger(__name__)


class SFTPUploader:
    """Uploads files to the router's filesystem through an SSH session."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.address.strip("[]")
        self.port = settings.ssh_port
        self.login = settings.login
        self.password = settings.password
        self.timeout = settings.timeout
        self._client: Optional[paramiko.SSHClient] = None

    def __enter__(self) -> "SFTPUploader":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def open(self) -> paramiko.SSHClient:
        """
        Establish an authenticated SSH session.

        Returns:
            The connected SSH client

        Raises:
            AuthError: If the router rejects the credentials
            TransferError: If the session cannot be established
        """
        logger.info(f"Creating SSH session to {self.host}:{self.port}")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=self.host,
                port=self.port,
                username=self.login,
                password=self.password,
                look_for_keys=False,
                allow_agent=False,
                timeout=self.timeout,
            )
        except paramiko.AuthenticationException as e:
            client.close()
            raise AuthError(f"SSH authentication failed for {self.login}@{self.host}") from e
        except (paramiko.SSHException, socket.error) as e:
            client.close()
            raise TransferError(f"Cannot open SSH session to {self.host}:{self.port}: {e}") from e

        self._client = client
        logger.info("SSH session has been created")
        return client

    def upload(self, local_path: Path, remote_name: str) -> None:
        """
        Copy a local file to the router's filesystem root.

        Raises:
            TransferError: If the copy fails
        """
        client = self._client or self.open()

        logger.info(f"Uploading {local_path} as {remote_name}")
        try:
            with client.open_sftp() as sftp:
                sftp.put(str(local_path), remote_name)
        except (paramiko.SSHException, OSError) as e:
            raise TransferError(f"Failed to upload {local_path}: {e}") from e
        logger.info("Script has been uploaded")

    def close(self) -> None:
        """Close the SSH session if open."""
        if self._client is not None:
            self._client.close()
            self._client = None
