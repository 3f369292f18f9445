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

""" Patch orchestrator - drives one patch run from request to report. Any failure surfaces as a PatchOperationError. """
import json
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.core_logic.PatchRequest import PatchRequest
from patchengine.src.core_logic.RunContext import RunContext

# do not instantiate directly - these are exclusively for type hinting support
from patchengine.src.bootstrap.EnvLayer import EnvLayer
from patchengine.src.core_logic.RebootManager import RebootManager
from patchengine.src.local_loggers.CompositeLogger import CompositeLogger
from patchengine.src.service_interfaces.FactsGateway import FactsGateway
from patchengine.src.service_interfaces.StatusHandler import StatusHandler


class PatchOrchestrator(object):
    def __init__(self, env_layer, composite_logger, status_handler, facts_gateway, reboot_manager, patch_strategies, start_time):
        # type: (EnvLayer, CompositeLogger, StatusHandler, FactsGateway, RebootManager, dict, any) -> None
        self.env_layer = env_layer
        self.composite_logger = composite_logger
        self.status_handler = status_handler
        self.facts_gateway = facts_gateway
        self.reboot_manager = reboot_manager
        self.patch_strategies = patch_strategies    # family -> PatchStrategy
        self.start_time = start_time

    def start_patching(self):
        # type: () -> int
        """ Runs the pipeline. Returns the process exit code on success; raises PatchOperationError otherwise. """
        self.composite_logger.log("os_patching run started")

        # Request - extra params and timeout are validated here, before anything is spawned
        request = PatchRequest.from_json(self.env_layer.read_stdin())
        self.composite_logger.log_debug("[PO] Request accepted. {0}".format(repr(request)))

        # Node facts
        self.facts_gateway.check_prerequisites()
        facts = self.facts_gateway.gather()
        os_descriptor = self.facts_gateway.get_os_descriptor(facts)
        if os_descriptor.family not in Constants.SUPPORTED_FAMILIES:
            raise PatchOperationError("Unsupported OS: {0}".format(str(os_descriptor.family)), Constants.ErrorKind.UNSUPPORTED_OS, Constants.ErrorCode.NOT_FOUND)
        run_context = RunContext(self.composite_logger, os_descriptor, self.facts_gateway.get_inventory(facts), self.start_time)
        inventory = run_context.inventory

        if request.clean_cache:
            self.__get_strategy(os_descriptor.family).clean_cache()

        self.facts_gateway.refresh(os_descriptor)

        reboot_mode = self.reboot_manager.resolve_effective(inventory.reboot_override, request.reboot)

        if request.security_only:
            self.composite_logger.log("Applying security patches only")

        if inventory.blocked:
            self.composite_logger.log_error("Patching blocked, not continuing")
            raise PatchOperationError("Patching blocked {0}".format(json.dumps(inventory.blocked_reasons)), Constants.ErrorKind.BLOCKED, Constants.ErrorCode.BLOCKED)

        pre_patching_command = inventory.pre_patching_command or request.pre_patching_command
        if pre_patching_command:
            self.run_pre_patching_command(pre_patching_command)

        # Nothing to do
        strategy = self.__get_strategy(os_descriptor.family)
        if strategy.get_update_count(run_context, request.security_only) == 0:
            return self.__complete_without_patches(run_context, request, reboot_mode)

        # Patch
        outcome = strategy.execute(run_context, request)
        self.composite_logger.log("Patching complete")
        self.composite_logger.log("Patching took {0} seconds".format(str(round(self.env_layer.datetime.total_seconds_from_time_delta(self.env_layer.datetime.now() - self.start_time), 1))))

        self.facts_gateway.refresh(os_descriptor)

        reboot_needed = self.reboot_manager.is_reboot_needed(os_descriptor, reboot_mode)
        self.composite_logger.log("reboot_required returning {0}".format(str(reboot_needed)))

        run_report = self.status_handler.build_run_report(outcome.return_code, reboot_mode, request.security_only, Constants.Messages.PATCHING_COMPLETE,
                                                          outcome.packages_updated, outcome.raw_output, outcome.job_id, inventory.pinned_packages,
                                                          self.reboot_manager.is_reboot_pending(os_descriptor))
        self.status_handler.report_success(run_report)

        if reboot_needed:
            self.reboot_manager.start_reboot(os_descriptor, Constants.Messages.REBOOT_REQUIRED)

        self.composite_logger.log("os_patching run complete")
        return Constants.ExitCode.Okay

    def run_pre_patching_command(self, pre_patching_command):
        # type: (str) -> None
        file_system = self.env_layer.file_system
        if not file_system.exists(pre_patching_command):
            raise PatchOperationError("Pre patching command not found {0}".format(pre_patching_command), Constants.ErrorKind.PRE_PATCHING_COMMAND, Constants.ErrorCode.NOT_FOUND)
        if not file_system.is_executable(pre_patching_command):
            raise PatchOperationError("Pre patching command not executable {0}".format(pre_patching_command), Constants.ErrorKind.PRE_PATCHING_COMMAND, Constants.ErrorCode.NOT_EXECUTABLE)

        self.composite_logger.log("Running pre_patching_command : {0}".format(pre_patching_command))
        code, output, error_output = self.env_layer.run_command_capture(pre_patching_command)
        if code != 0:
            raise PatchOperationError("Pre-patching-command failed: {0}".format(error_output), Constants.ErrorKind.PRE_PATCHING_COMMAND, code)
        self.composite_logger.log("Finished pre_patching_command : {0}".format(pre_patching_command))

    def __complete_without_patches(self, run_context, request, reboot_mode):
        """ Success with an empty result. Only 'always' reboots when nothing was patched. """
        reboot_always = reboot_mode == Constants.RebootMode.ALWAYS
        message = Constants.Messages.NO_PATCHES_REBOOT if reboot_always else Constants.Messages.NO_PATCHES

        run_report = self.status_handler.build_run_report(Constants.RETURN_SUCCESS, reboot_mode, request.security_only, message,
                                                          [], "", "", run_context.inventory.pinned_packages,
                                                          self.reboot_manager.is_reboot_pending(run_context.os_descriptor))
        self.status_handler.report_success(run_report)

        if reboot_always:
            self.reboot_manager.start_reboot(run_context.os_descriptor, Constants.Messages.REBOOT_NO_PATCHES)
        else:
            self.composite_logger.log("No patches to apply, exiting")
        return Constants.ExitCode.Okay

    def __get_strategy(self, family):
        strategy = self.patch_strategies.get(family)
        if strategy is None:
            self.composite_logger.log_error("Unsupported OS {0} - exiting".format(str(family)))
            raise PatchOperationError("Unsupported OS", Constants.ErrorKind.UNSUPPORTED_OS, Constants.ErrorCode.NOT_FOUND)
        return strategy
