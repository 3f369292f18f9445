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

""" Mirrors operator-relevant messages to the local syslog under a fixed ident. No-op where syslog does not exist. """
from patchengine.src.bootstrap.Constants import Constants

try:
    import syslog
except ImportError:
    syslog = None   # Windows


class SyslogLogger(object):
    def __init__(self, ident=Constants.SYSLOG_IDENT, enabled=True):
        self.ident = ident
        self.enabled = enabled and syslog is not None
        if self.enabled:
            syslog.openlog(self.ident, syslog.LOG_PID, syslog.LOG_USER)

    def info(self, message):
        self.__write(syslog.LOG_INFO if self.enabled else None, message)

    def warning(self, message):
        self.__write(syslog.LOG_WARNING if self.enabled else None, message)

    def error(self, message):
        self.__write(syslog.LOG_ERR if self.enabled else None, message)

    def close(self):
        if self.enabled:
            syslog.closelog()
            self.enabled = False

    def __write(self, priority, message):
        if not self.enabled:
            return
        for line in str(message).strip().splitlines():
            if line.strip():
                syslog.syslog(priority, line)
