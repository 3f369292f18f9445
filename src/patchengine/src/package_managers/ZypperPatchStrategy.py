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

"""ZypperPatchStrategy for Suse family nodes"""
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.package_managers.PatchStrategy import PatchStrategy, PatchOutcome


class ZypperPatchStrategy(PatchStrategy):
    """Implementation of SUSE patching using zypper"""

    def __init__(self, env_layer, composite_logger):
        super(ZypperPatchStrategy, self).__init__(env_layer, composite_logger)
        self.family = Constants.OSFamily.SUSE
        self.tool_name = "zypper"
        self.extra_params_key = Constants.RequestKeys.ZYPPER_PARAMS
        self.clean_cache_cmd = Constants.Zypper.CLEAN_CACHE

        # Commands
        self.upgrade_cmd = Constants.Zypper.UPGRADE
        self.required_params = Constants.Zypper.REQUIRED_PARAMS

    def get_command_options(self, release_major):
        # type: (int) -> str
        options = Constants.Zypper.COMMAND_PARAMS
        if release_major >= Constants.Zypper.REPLACE_FILES_MIN_MAJOR:
            options = "{0} {1}".format(options, Constants.Zypper.REPLACE_FILES)
        return options

    def execute(self, run_context, request):
        packages = run_context.inventory.get_updates(request.security_only)
        if request.security_only:
            mode, operation_name = Constants.Zypper.SECURITY_MODE, "zypper patch"
        else:
            mode, operation_name = Constants.Zypper.FULL_MODE, "zypper update"

        command = self.compose_command(self.upgrade_cmd, required=self.required_params, params=request.get_extra_params(self.extra_params_key),
                                       mode=mode, options=self.get_command_options(run_context.os_descriptor.release_major))
        raw_output = self.invoke_package_manager(command, request.timeout, operation_name)
        return PatchOutcome(Constants.RETURN_SUCCESS, packages, "", raw_output)
