"""OS-aware command formatting.

Adapts commands to a host's shell dialect and provides the canonical
diagnostic commands for each OS family.
"""

from enum import Enum

from remoteops.models import OSFamily, OSInfo, ShellDialect


class DiagnosticKind(str, Enum):
    """Canonical diagnostics available on every OS family."""

    SYSTEM_INFO = "system_info"
    DISK = "disk"
    MEMORY = "memory"
    CPU = "cpu"
    PROCESSES = "processes"


def format_command(os_info: OSInfo, command: str) -> str:
    """Adapt a command to the shell dialect of the host.

    PowerShell hosts get the command wrapped in a quoted ``powershell``
    invocation with embedded double quotes escaped. Other dialects run the
    command unchanged.

    Args:
        os_info: Classification of the target host
        command: Command as the caller wrote it

    Returns:
        Command string ready to execute on the host
    """
    if os_info.shell is ShellDialect.POWERSHELL:
        if command.lower().startswith("powershell"):
            return command
        escaped = command.replace('"', '\\"')
        return f'powershell "{escaped}"'
    return command


_WINDOWS_DISK = (
    'powershell "Get-WmiObject Win32_LogicalDisk | Select-Object DeviceID, '
    "@{Name='Size(GB)';Expression={[math]::Round($_.Size/1GB,2)}}, "
    "@{Name='FreeSpace(GB)';Expression={[math]::Round($_.FreeSpace/1GB,2)}}, "
    "@{Name='%Free';Expression={[math]::Round(($_.FreeSpace/$_.Size)*100,2)}}\""
)
_WINDOWS_MEMORY = (
    'powershell "Get-WmiObject Win32_OperatingSystem | Select-Object '
    "@{Name='TotalMemory(GB)';Expression={[math]::Round($_.TotalVisibleMemorySize/1MB,2)}}, "
    "@{Name='FreeMemory(GB)';Expression={[math]::Round($_.FreePhysicalMemory/1MB,2)}}, "
    "@{Name='UsedMemory(GB)';Expression="
    "{[math]::Round(($_.TotalVisibleMemorySize-$_.FreePhysicalMemory)/1MB,2)}}\""
)
_WINDOWS_CPU = (
    "powershell \"Get-Counter '\\Processor(_Total)\\% Processor Time' "
    "-SampleInterval 1 -MaxSamples 1 | Select-Object -ExpandProperty CounterSamples "
    '| Select-Object CookedValue"'
)
_WINDOWS_PROCESSES = (
    'powershell "Get-Process | Sort-Object CPU -Descending | Select-Object -First 10 '
    "Name, @{Name='CPU(s)';Expression={$_.CPU}}, "
    "@{Name='Memory(MB)';Expression={[math]::Round($_.WorkingSet/1MB,2)}} "
    '| Format-Table -AutoSize"'
)

_UNIX_COMMANDS: dict[DiagnosticKind, str] = {
    DiagnosticKind.SYSTEM_INFO: "uname -a && hostname && uptime",
    DiagnosticKind.DISK: "df -h",
    DiagnosticKind.MEMORY: "free -h",
    DiagnosticKind.CPU: 'top -bn1 | grep "Cpu(s)" || uptime',
    DiagnosticKind.PROCESSES: "ps aux --sort=-pcpu | head -11",
}

DIAGNOSTIC_COMMANDS: dict[OSFamily, dict[DiagnosticKind, str]] = {
    OSFamily.WINDOWS: {
        DiagnosticKind.SYSTEM_INFO: "systeminfo",
        DiagnosticKind.DISK: _WINDOWS_DISK,
        DiagnosticKind.MEMORY: _WINDOWS_MEMORY,
        DiagnosticKind.CPU: _WINDOWS_CPU,
        DiagnosticKind.PROCESSES: _WINDOWS_PROCESSES,
    },
    OSFamily.LINUX: _UNIX_COMMANDS,
    OSFamily.UNIX: _UNIX_COMMANDS,
    OSFamily.UNKNOWN: {
        **_UNIX_COMMANDS,
        DiagnosticKind.SYSTEM_INFO: 'echo "System: $(uname -s 2>/dev/null || echo Unknown)"',
    },
}


def get_diagnostic_command(os_info: OSInfo, kind: DiagnosticKind | str) -> str:
    """Look up the canonical command for a diagnostic on this OS family.

    Raises:
        ValueError: If kind is not a known diagnostic
    """
    return DIAGNOSTIC_COMMANDS[os_info.family][DiagnosticKind(kind)]


def get_system_info_command(os_info: OSInfo) -> str:
    return get_diagnostic_command(os_info, DiagnosticKind.SYSTEM_INFO)


def get_disk_space_command(os_info: OSInfo) -> str:
    return get_diagnostic_command(os_info, DiagnosticKind.DISK)


def get_memory_command(os_info: OSInfo) -> str:
    return get_diagnostic_command(os_info, DiagnosticKind.MEMORY)


def get_cpu_command(os_info: OSInfo) -> str:
    return get_diagnostic_command(os_info, DiagnosticKind.CPU)


def get_top_processes_command(os_info: OSInfo) -> str:
    return get_diagnostic_command(os_info, DiagnosticKind.PROCESSES)
