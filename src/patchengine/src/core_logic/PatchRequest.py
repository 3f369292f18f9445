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

""" Patch request - the task parameters received on stdin """
import json
import re
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError


class PatchRequest(object):
    """ Immutable once parsed. Construct through from_json so that validation always happens. """

    def __init__(self, security_only=False, reboot=None, timeout=None, clean_cache=False,
                 yum_params=None, dpkg_params=None, zypper_params=None, pre_patching_command=None, install_dir=None):
        self.__security_only = bool(security_only)
        self.__reboot = reboot
        self.__timeout = timeout
        self.__clean_cache = bool(clean_cache)
        self.__extra_params = {
            Constants.RequestKeys.YUM_PARAMS: yum_params,
            Constants.RequestKeys.DPKG_PARAMS: dpkg_params,
            Constants.RequestKeys.ZYPPER_PARAMS: zypper_params
        }
        self.__pre_patching_command = pre_patching_command
        self.__install_dir = install_dir

    # region - Accessors
    @property
    def security_only(self):
        return self.__security_only

    @property
    def reboot(self):
        return self.__reboot

    @property
    def timeout(self):
        return self.__timeout

    @property
    def clean_cache(self):
        return self.__clean_cache

    @property
    def yum_params(self):
        return self.__extra_params[Constants.RequestKeys.YUM_PARAMS]

    @property
    def dpkg_params(self):
        return self.__extra_params[Constants.RequestKeys.DPKG_PARAMS]

    @property
    def zypper_params(self):
        return self.__extra_params[Constants.RequestKeys.ZYPPER_PARAMS]

    @property
    def pre_patching_command(self):
        return self.__pre_patching_command

    @property
    def install_dir(self):
        return self.__install_dir
    # endregion - Accessors

    # region - Parsing and validation
    @classmethod
    def from_json(cls, raw):
        # type: (str) -> PatchRequest
        """ Parses and fully validates the raw request. Nothing is spawned for a request that fails here. """
        try:
            params = json.loads(raw) if raw is not None and str(raw).strip() != "" else None
        except ValueError:
            params = None

        if not isinstance(params, dict):
            raise PatchOperationError("Invalid JSON received: '{0}'".format(str(raw)), Constants.ErrorKind.INPUT, Constants.ErrorCode.INPUT)

        keys = Constants.RequestKeys
        for key in (keys.YUM_PARAMS, keys.DPKG_PARAMS, keys.ZYPPER_PARAMS):
            cls.validate_extra_params(key, params.get(key))

        return cls(security_only=params.get(keys.SECURITY_ONLY, False),
                   reboot=params.get(keys.REBOOT),
                   timeout=cls.validate_timeout(params.get(keys.TIMEOUT)),
                   clean_cache=params.get(keys.CLEAN_CACHE, False),
                   yum_params=params.get(keys.YUM_PARAMS) or None,
                   dpkg_params=params.get(keys.DPKG_PARAMS) or None,
                   zypper_params=params.get(keys.ZYPPER_PARAMS) or None,
                   pre_patching_command=params.get(keys.PRE_PATCHING_COMMAND) or None,
                   install_dir=params.get(keys.INSTALL_DIR) or None)

    @staticmethod
    def validate_extra_params(key, value):
        # type: (str, any) -> None
        """ Extra package manager params are spliced into a shell command line """
        if value is None:
            return
        if re.search(Constants.UNSAFE_PARAMS_REGEX, str(value)):
            raise PatchOperationError("Unsafe content in {0}".format(key), Constants.ErrorKind.UNSAFE_PARAMETER, Constants.ErrorCode.UNSAFE_PARAMETER)

    @staticmethod
    def validate_timeout(value):
        # type: (any) -> int
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise PatchOperationError("timeout set to {0} seconds - invalid".format(str(value)), Constants.ErrorKind.INVALID_TIMEOUT, Constants.ErrorCode.INVALID_TIMEOUT)
        return value
    # endregion - Parsing and validation

    def get_extra_params(self, key):
        return self.__extra_params.get(key) or ""

    def __repr__(self):
        return "PatchRequest(security_only={0}, reboot={1}, timeout={2}, clean_cache={3})".format(self.__security_only, self.__reboot, self.__timeout, self.__clean_cache)
