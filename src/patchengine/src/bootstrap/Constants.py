# Copyright 2020 Microsoft Corporation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# Requires Python 3.6+


class Constants(object):
    """Static class contains all constant variables"""
    class ExecEnv(object):
        DEV = 'Dev'
        TEST = 'Test'
        PROD = 'Prod'

    OS_PATCHING_ENV_VARIABLE = "OS_PATCHING_ENV"    # Overrides environment setting
    SYSLOG_IDENT = "os_patching"

    class ExitCode(object):
        Okay = 0
        CriticalError = 1

    # region - Execution limits
    BUFFER_SIZE = 4096                          # bytes read from a child's output per chunk
    PATCH_POLL_INTERVAL_IN_SECS = 2
    PROCESS_TERMINATE_GRACE_IN_SECS = 5
    MAX_FILE_OPERATION_RETRY_COUNT = 3
    # endregion

    # region - Request keys
    class RequestKeys(object):
        SECURITY_ONLY = "security_only"
        REBOOT = "reboot"
        TIMEOUT = "timeout"
        CLEAN_CACHE = "clean_cache"
        YUM_PARAMS = "yum_params"
        DPKG_PARAMS = "dpkg_params"
        ZYPPER_PARAMS = "zypper_params"
        PRE_PATCHING_COMMAND = "pre_patching_command"
        INSTALL_DIR = "_installdir"

    UNSAFE_PARAMS_REGEX = r"[\$\|\/;`&]"
    # endregion

    # region - Facts
    class FactKeys(object):
        OS = "os"
        FAMILY = "family"
        RELEASE = "release"
        MAJOR = "major"
        OS_PATCHING = "os_patching"
        WRAPPED_VALUES = "values"
        PACKAGE_UPDATE_COUNT = "package_update_count"
        SECURITY_PACKAGE_UPDATE_COUNT = "security_package_update_count"
        PACKAGE_UPDATES = "package_updates"
        SECURITY_PACKAGE_UPDATES = "security_package_updates"
        PINNED_PACKAGES = "pinned_packages"
        REBOOT_OVERRIDE = "reboot_override"
        BLOCKED = "blocked"
        BLOCKED_REASONS = "blocked_reasons"
        PRE_PATCHING_COMMAND = "pre_patching_command"

    class OSFamily(object):
        REDHAT = "RedHat"
        DEBIAN = "Debian"
        SUSE = "Suse"
        WINDOWS = "windows"

    SUPPORTED_FAMILIES = [OSFamily.REDHAT, OSFamily.DEBIAN, OSFamily.SUSE, OSFamily.WINDOWS]
    # endregion

    # region - Reboot settings
    class RebootMode(object):
        ALWAYS = "always"
        NEVER = "never"
        PATCHED = "patched"
        SMART = "smart"
        DEFAULT = "default"

    EFFECTIVE_REBOOT_MODES = [RebootMode.ALWAYS, RebootMode.NEVER, RebootMode.PATCHED, RebootMode.SMART]

    REBOOT_NOTIFY_MESSAGE = "Rebooting due to the installation of updates by os_patching"
    RHEL_NEEDS_RESTARTING_MIN_MAJOR = 6     # the tool does not exist before this release
    RHEL_NEEDS_RESTARTING_RC_MIN_MAJOR = 7  # '-r' (exit code based answer) is available from this release
    # endregion

    # region - Platform paths and commands
    class LinuxPaths(object):
        CACHE_DIR = "/var/cache/os_patching"
        HISTORY_FILE = "/var/cache/os_patching/run_history"
        LOG_FILE = "/var/cache/os_patching/os_patching_task.log"
        FACT_GENERATION_SCRIPT = "/usr/local/bin/os_patching_fact_generation.sh"
        PUPPET_CMD = "/opt/puppetlabs/puppet/bin/puppet"
        NEEDS_RESTARTING = "/usr/bin/needs-restarting"
        REBOOT_REQUIRED_MARKER = "/var/run/reboot-required"

    class WindowsPaths(object):
        CACHE_DIR = "C:/ProgramData/os_patching"
        HISTORY_FILE = "C:/ProgramData/os_patching/run_history"
        LOG_FILE = "C:/ProgramData/os_patching/os_patching_task.log"
        FACT_GENERATION_SCRIPT = "C:/ProgramData/os_patching/os_patching_fact_generation.ps1"
        PUPPET_CMD = "{programfiles}/Puppet Labs/Puppet/bin/puppet"
        POWERSHELL = "{systemroot}/system32/WindowsPowerShell/v1.0/powershell.exe"
        PATCH_SCRIPT = "{installdir}/os_patching/files/os_patching_windows.ps1"

    class Commands(object):
        FACTS = "{puppet} facts"
        LINUX_FACT_GENERATION = "{script}"
        WINDOWS_FACT_GENERATION = "{powershell} -ExecutionPolicy RemoteSigned -file {script}"
        LINUX_REBOOT = "nohup /sbin/shutdown -r +1 2>/dev/null 1>/dev/null &"
        WINDOWS_REBOOT = "shutdown /r /t 60 /c \"{message}\" /d p:2:17"
        NEEDS_RESTARTING = "{tool}"
        NEEDS_RESTARTING_RC = "{tool} -r"
        WINDOWS_PENDING_REBOOT = "powershell -NonInteractive -EncodedCommand {encoded}"

    WINDOWS_PENDING_REBOOT_PROBE = "\n".join([
        "$ErrorActionPreference=\"stop\"",
        "$rebootPending = $false",
        "if (Get-ChildItem \"HKLM:\\Software\\Microsoft\\Windows\\CurrentVersion\\Component Based Servicing\\RebootPending\" -EA Ignore) { $rebootPending = $true }",
        "if (Get-Item \"HKLM:\\SOFTWARE\\Microsoft\\Windows\\CurrentVersion\\WindowsUpdate\\Auto Update\\RebootRequired\" -EA Ignore) { $rebootPending = $true }",
        "if (Get-ItemProperty \"HKLM:\\SYSTEM\\CurrentControlSet\\Control\\Session Manager\" -Name PendingFileRenameOperations -EA Ignore) { $rebootPending = $true }",
        "try {",
        "    $util = [wmiclass]\"\\\\.\\root\\ccm\\clientsdk:CCM_ClientUtilities\"",
        "    $status = $util.DetermineIfRebootPending()",
        "    if (($null -ne $status) -and $status.RebootPending) {",
        "        $rebootPending = $true",
        "    }",
        "}",
        "catch {}",
        "$rebootPending"])
    # endregion

    # region - Package manager commands
    class Dnf(object):
        UPGRADE = "dnf {params} {security} upgrade -y"
        SECURITY_FLAG = "--security"
        HISTORY = "dnf history"
        HISTORY_INFO = "dnf history info {job}"
        CLEAN_CACHE = "dnf clean all"
        HISTORY_ROW_REGEX = r"^\s+(\d+)\s*\|\s*[\w\-<>,= ]*\|\s*([\d:\- ]*)"
        RETURN_CODE_REGEX = r"^Return-Code\s+:\s+(.*)$"
        PACKAGE_ACTION_REGEX = r"^\s+(Installed|Install|Upgraded|Erased|Updated)\s+(\S+)\s"
        HISTORY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
        HISTORY_TIME_SECONDS_SUFFIX = ":59"   # dnf history only shows minutes

    class Apt(object):
        UPGRADE = "DEBIAN_FRONTEND=noninteractive apt-get {params} -y {options} {mode}"
        OPTIONS = "-o Apt::Get::Purge=false -o Dpkg::Options::=--force-confold -o Dpkg::Options::=--force-confdef --no-install-recommends"
        SECURITY_MODE = "install {packages}"
        FULL_MODE = "dist-upgrade"
        CLEAN_CACHE = "apt-get clean"

    class Zypper(object):
        REQUIRED_PARAMS = "--non-interactive --no-abbrev --quiet"
        COMMAND_PARAMS = "--auto-agree-with-licenses"
        REPLACE_FILES = "--replacefiles"
        REPLACE_FILES_MIN_MAJOR = 12
        SECURITY_MODE = "patch -g security"
        FULL_MODE = "update -t package"
        UPGRADE = "zypper {required} {params} {mode} {options}"
        CLEAN_CACHE = "zypper cc --all"

    class Windows(object):
        PATCH = "{powershell} -NonInteractive -ExecutionPolicy RemoteSigned -File {script} {security} -Timeout {timeout}"
        SECURITY_FLAG = "-SecurityOnly"
        OUTPUT_FILE_REGEX = r"^##output file is (.*)$"
        OUTPUT_FILE_NOT_APPLICABLE = "not applicable"
        TITLE = "Title"
        DEADLINE_GRACE_IN_SECS = 60        # the script enforces -Timeout itself; the engine deadline is the backstop
    # endregion

    # region - Reporting
    RETURN_SUCCESS = "Success"
    HISTORY_SEPARATOR = "|"

    class Messages(object):
        PATCHING_COMPLETE = "Patching complete"
        NO_PATCHES = "No patches to apply"
        NO_PATCHES_REBOOT = "No patches to apply, reboot triggered"
        REBOOT_REQUIRED = "Reboot required, rebooting now"
        REBOOT_NO_PATCHES = "No patches to apply, rebooting as requested"
    # endregion

    # region - Errors
    class ErrorKind(object):
        INPUT = "input"
        SETUP = "setup"
        FACTS = "facts"
        UNSUPPORTED_OS = "unsupported-os"
        UNSAFE_PARAMETER = "unsafe-parameter"
        INVALID_TIMEOUT = "invalid-timeout"
        BLOCKED = "blocked"
        PRE_PATCHING_COMMAND = "pre-patching-command"
        PACKAGE_MANAGER = "package-manager"
        TIMEOUT = "timeout"
        REBOOT_OVERRIDE = "reboot-override"
        REBOOT_PARAM = "reboot-param"
        FACT_REFRESH = "fact-refresh"
        CLEAN_CACHE = "clean-cache"
        UNHANDLED = "unhandled"

    class ErrorCode(object):
        GENERIC = 1
        BLOCKED = 100
        REBOOT_OVERRIDE = 105
        REBOOT_PARAM = 108
        UNSAFE_PARAMETER = 110
        INVALID_TIMEOUT = 121
        NOT_FOUND = 200
        NOT_EXECUTABLE = 210
        SETUP = 255
        INPUT = 400
        TIMEOUT = 403
    # endregion
