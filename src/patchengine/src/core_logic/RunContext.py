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

""" Per-run state handed explicitly to every component that needs the node's facts """
from patchengine.src.bootstrap.Constants import Constants


class OSDescriptor(object):
    def __init__(self, family, release_major):
        # type: (str, int) -> None
        self.family = family
        self.release_major = release_major

    def is_windows(self):
        return self.family == Constants.OSFamily.WINDOWS

    def __repr__(self):
        return "OSDescriptor(family={0}, release_major={1})".format(self.family, self.release_major)


class PatchInventory(object):
    """ The os_patching fact, with missing keys defaulted. Diverging counts and lists are taken at face value. """
    def __init__(self, facts):
        # type: (dict) -> None
        keys = Constants.FactKeys
        self.package_update_count = self.__as_count(facts.get(keys.PACKAGE_UPDATE_COUNT))
        self.security_package_update_count = self.__as_count(facts.get(keys.SECURITY_PACKAGE_UPDATE_COUNT))
        self.package_updates = self.__as_list(facts.get(keys.PACKAGE_UPDATES))
        self.security_package_updates = self.__as_list(facts.get(keys.SECURITY_PACKAGE_UPDATES))
        self.pinned_packages = self.__as_list(facts.get(keys.PINNED_PACKAGES))
        self.reboot_override = facts.get(keys.REBOOT_OVERRIDE, Constants.RebootMode.DEFAULT)
        self.blocked = bool(facts.get(keys.BLOCKED, False))
        self.blocked_reasons = self.__as_list(facts.get(keys.BLOCKED_REASONS))
        self.pre_patching_command = facts.get(keys.PRE_PATCHING_COMMAND) or None

        if self.reboot_override is None:
            self.reboot_override = Constants.RebootMode.DEFAULT

    def get_update_count(self, security_only):
        return self.security_package_update_count if security_only else self.package_update_count

    def get_updates(self, security_only):
        return list(self.security_package_updates if security_only else self.package_updates)

    @staticmethod
    def __as_count(value):
        try:
            return max(int(value), 0)
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def __as_list(value):
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]


class RunContext(object):
    def __init__(self, composite_logger, os_descriptor, inventory, start_time):
        self.composite_logger = composite_logger
        self.os_descriptor = os_descriptor
        self.inventory = inventory
        self.start_time = start_time
