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

import json
from patchengine.src.bootstrap.Constants import Constants


class RequestComposer(object):
    """ Helps encapsulate request composition for the engine from default settings that can be customized as desired prior to composition """

    def __init__(self):
        self.security_only = None
        self.reboot = None
        self.timeout = 120
        self.clean_cache = None
        self.yum_params = None
        self.dpkg_params = None
        self.zypper_params = None
        self.pre_patching_command = None
        self.install_dir = None

    def get_composed_request(self):
        """ Serializes the request, leaving out anything not set """
        keys = Constants.RequestKeys
        request = {}
        for key, value in ((keys.SECURITY_ONLY, self.security_only), (keys.REBOOT, self.reboot), (keys.TIMEOUT, self.timeout),
                           (keys.CLEAN_CACHE, self.clean_cache), (keys.YUM_PARAMS, self.yum_params), (keys.DPKG_PARAMS, self.dpkg_params),
                           (keys.ZYPPER_PARAMS, self.zypper_params), (keys.PRE_PATCHING_COMMAND, self.pre_patching_command), (keys.INSTALL_DIR, self.install_dir)):
            if value is not None:
                request[key] = value
        return json.dumps(request)
