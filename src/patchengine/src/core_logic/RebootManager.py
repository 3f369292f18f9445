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

""" Reboot management """
import base64

from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError

# do not instantiate directly - these are exclusively for type hinting support
from patchengine.src.bootstrap.EnvLayer import EnvLayer
from patchengine.src.core_logic.RunContext import OSDescriptor
from patchengine.src.local_loggers.CompositeLogger import CompositeLogger


class RebootManager(object):
    """ Implements the reboot policy: which mode applies, whether a reboot is needed, and triggering it """
    def __init__(self, env_layer, composite_logger):
        # type: (EnvLayer, CompositeLogger) -> None
        self.env_layer = env_layer
        self.composite_logger = composite_logger

        self.needs_restarting_path = getattr(self.env_layer.paths, 'NEEDS_RESTARTING', Constants.LinuxPaths.NEEDS_RESTARTING)
        self.reboot_required_marker_path = getattr(self.env_layer.paths, 'REBOOT_REQUIRED_MARKER', Constants.LinuxPaths.REBOOT_REQUIRED_MARKER)

    # region - Reboot setting helpers
    @staticmethod
    def normalize_reboot_setting(value):
        # type: (any) -> any
        """ Maps booleans (and their string forms) onto modes. Returns None for anything unrecognized. """
        if value is True or (isinstance(value, str) and value == 'true'):
            return Constants.RebootMode.PATCHED
        if value is False or (isinstance(value, str) and value == 'false'):
            return Constants.RebootMode.NEVER
        if isinstance(value, str) and value in Constants.EFFECTIVE_REBOOT_MODES:
            return value
        return None

    def resolve_effective(self, override, requested):
        # type: (any, any) -> str
        """ The node-level override wins unless it is 'default', in which case the request decides. No request means never. """
        effective = self.normalize_reboot_setting(override)

        if effective is None:
            if override != Constants.RebootMode.DEFAULT:
                raise PatchOperationError("Fact reboot_override invalid: {0}".format(str(override)),
                                          Constants.ErrorKind.REBOOT_OVERRIDE, Constants.ErrorCode.REBOOT_OVERRIDE)
            if requested is None:
                effective = Constants.RebootMode.NEVER
            else:
                effective = self.normalize_reboot_setting(requested)
                if effective is None:
                    raise PatchOperationError("Invalid parameter for reboot: {0}".format(str(requested)),
                                              Constants.ErrorKind.REBOOT_PARAM, Constants.ErrorCode.REBOOT_PARAM)
        elif override != requested:
            self.composite_logger.log("Reboot override set to {0}, reboot parameter set to {1}. Using '{2}'".format(str(override), str(requested), effective))

        self.composite_logger.log("Reboot after patching set to {0}".format(effective))
        return effective
    # endregion

    # region - Reboot condition reporters
    def is_reboot_needed(self, os_descriptor, mode):
        # type: (OSDescriptor, str) -> bool
        """ Post-patch decision. Only 'smart' consults the OS. """
        if mode in (Constants.RebootMode.ALWAYS, Constants.RebootMode.PATCHED):
            return True
        if mode != Constants.RebootMode.SMART:
            return False

        family = os_descriptor.family
        if family == Constants.OSFamily.REDHAT:
            return self.__is_rhel_restart_needed(os_descriptor.release_major)
        if family in (Constants.OSFamily.DEBIAN, Constants.OSFamily.SUSE):
            return self.env_layer.file_system.is_file(self.reboot_required_marker_path)
        if family == Constants.OSFamily.WINDOWS:
            return self.is_windows_reboot_pending()
        return False

    def is_reboot_pending(self, os_descriptor):
        # type: (OSDescriptor) -> bool
        """ Final check reported as reboot_required, independent of the reboot mode. """
        family = os_descriptor.family
        if family == Constants.OSFamily.WINDOWS:
            return self.is_windows_reboot_pending()
        if family == Constants.OSFamily.REDHAT:
            if not self.__is_needs_restarting_available():
                return False
            code, output = self.env_layer.run_command_output(Constants.Commands.NEEDS_RESTARTING_RC.format(tool=self.needs_restarting_path))
            return code != 0
        return self.env_layer.file_system.is_file(self.reboot_required_marker_path)

    def is_windows_reboot_pending(self):
        # type: () -> bool
        encoded = base64.b64encode(Constants.WINDOWS_PENDING_REBOOT_PROBE.encode('utf-16le')).decode('ascii')
        code, output = self.env_layer.run_command_output(Constants.Commands.WINDOWS_PENDING_REBOOT.format(encoded=encoded))
        lines = str(output).splitlines() if output else []
        pending = len(lines) > 0 and lines[0].strip() == 'True'
        self.composite_logger.log_debug("[RM] Windows pending reboot check. [Code={0}][Pending={1}]".format(str(code), str(pending)))
        return pending

    def __is_rhel_restart_needed(self, release_major):
        # type: (int) -> bool
        if release_major < Constants.RHEL_NEEDS_RESTARTING_MIN_MAJOR:
            return True     # needs-restarting doesn't exist before RHEL6

        if not self.__is_needs_restarting_available():
            return False

        if release_major >= Constants.RHEL_NEEDS_RESTARTING_RC_MIN_MAJOR:
            code, output = self.env_layer.run_command_output(Constants.Commands.NEEDS_RESTARTING_RC.format(tool=self.needs_restarting_path))
            return code != 0

        # RHEL6: any listed process means the node needs a reboot
        code, output, error_output = self.env_layer.run_command_capture(Constants.Commands.NEEDS_RESTARTING.format(tool=self.needs_restarting_path))
        return bool(output) or bool(error_output)

    def __is_needs_restarting_available(self):
        if self.env_layer.file_system.is_file(self.needs_restarting_path):
            return True
        self.composite_logger.log_warning("needs-restarting command not found, cannot determine if reboot is required")
        self.composite_logger.log_warning("please install the yum-utils/dnf-utils package to enable this functionality")
        return False
    # endregion

    # region - Reboot action methods
    def start_reboot(self, os_descriptor, message):
        # type: (OSDescriptor, str) -> None
        """ Launches the platform reboot command detached. Returns without waiting for it. """
        self.composite_logger.log(message)
        if os_descriptor.is_windows():
            reboot_cmd = Constants.Commands.WINDOWS_REBOOT.format(message=Constants.REBOOT_NOTIFY_MESSAGE)
        else:
            reboot_cmd = Constants.Commands.LINUX_REBOOT
        self.composite_logger.log_debug("[RM] Triggering detached reboot. [Command={0}]".format(reboot_cmd))
        self.env_layer.reboot_machine(reboot_cmd)
    # endregion
