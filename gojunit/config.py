# gojunit configuration
# Copyright (C) 2019-2022 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.

import re
import sys
from pathlib import Path
from configparser import ConfigParser

from gojunit.utils import *

# ReportOptions fields that should not be overwritten by actual options:
_options_base_fields = {
    'script_name',
    'usage_str',
    'sources',
    '_positional_args',
    '_cmdline_optional_args',
}

cmdline_arg_regex = re.compile(r"(?P<prefix>--)?(?:(?P<keyword>[0-9A-Za-z_-]+)=)?(?P<arg>.*)")

true_values = {'True', 'true', 'yes', '1'}
false_values = {'False', 'false', 'no', '0'}

class ReportOptions:
    """Collects options for a go-junit-report invocation.

    Each option has an internal name and possibly some external names
    used to specify that option in different configuration sources
    (command line arguments, config files and environment variables).
    The internal name of the option is the name of the ReportOptions
    instance variable storing the option's value.

    Attributes:
        script_name (str): Name of the command, also used as the name
            of its section in a config file.
        usage_str (str): Explanatory string which will be part of the
            usage message output by print_help().
        sources (map): Identifies the configuration source of each option.
    """

    _options = set()
    # Set of internal_name for all defined options.

    _option_names = {}
    # Maps (external_name, option_type) -> internal_name.
    # Command line names are stored with '-' replaced by '_'.

    _option_info = {}
    # Maps (internal_name, attr_or_flag) -> value
    # See docstring for option_info() for details.

    _negated_options = {}
    # Maps cmdline name of negated option to internal name of the original option.

    @classmethod
    def option_name(cls, external_name, option_type):
        """Returns the internal name of a specified option, or
        None if the external name does not reference an option.

        Args:
            external_name (str): External name of the option.
            option_type (str): One of 'cmdline', 'cmdline_short',
                'env', or 'config'.
        """
        if option_type == 'cmdline':
            external_name = external_name.replace('-', '_')
        if (external_name, option_type) not in cls._option_names:
            return None
        return cls._option_names[external_name, option_type]

    @classmethod
    def option_names(cls, option_type):
        """Iterate all external names of a specified option type.

        Yields:
            (external_name, internal_name)
        """
        for k, internal_name in cls._option_names.items():
            external_name, k_type = k
            if k_type != option_type: continue
            yield external_name, internal_name

    @classmethod
    def option_info(cls, internal_name, attr_or_flag_name):
        """Returns the specified attribute of a specified option.

        Permitted attributes:
        - default_value: default value of the option.
        - help_str: info about the option, used by print_help().
        - help_cookie: placeholder for the option value, used by print_help().

        Permitted flags (value is boolean):
        - nonconfig: the option may not be specified in a config file.
        - boolean_flag: the option controls a boolean flag.
        """
        if internal_name not in cls._options:
            return None
        return cls._option_info[internal_name, attr_or_flag_name]

    @classmethod
    def _add_option_name(cls, option_type, external_name, internal_name):
        if external_name is None: return
        if option_type == 'cmdline':
            external_name = external_name.replace('-', '_')
        cls._option_names[external_name, option_type] = internal_name

    @classmethod
    def add_option(cls, internal_name, cmdline=None, cmdline_short=None,
                   env=None, config=None, nonconfig=False, boolean=False,
                   default=None, help_str=None, help_cookie=None):
        """Define an option.

        Args:
            internal_name (str): Internal name of the option.
                Use '_' to separate words, and the command-line parser will
                allow the hyphen '-' to be used interchangeably.
            cmdline (str, optional): Long command-line flag for the option.
                Can be used in addition to the internal name of the option.
            cmdline_short (str, optional): Short command-line flag for the option.
            env (str, optional): Environment variable name for the option.
            config (str, optional): Configuration item name for the option.
                Within a config file, internal names can also be used directly.
            nonconfig (bool, optional): This option may not be set
                from a configuration file. Defaults to False.
            boolean (bool, optional): Option is a boolean flag.
                If true and cmdline is defined, will also define a negated
                version of the flag (e.g. '--progress' and '--no-progress').
            default (optional): Default value for the option.
            help_str (str, optional): A description of the option.
            help_cookie (str, optional): A 'placeholder' string for
                the option value to be used in the help message.
        """
        if internal_name in cls._options:
            warn_print("overriding definition for option '{}'" \
                    .format(internal_name))
        cls._options.add(internal_name)
        if boolean and default is None:
            default = False
        cls._option_info[internal_name, 'default_value'] = default
        cls._option_info[internal_name, 'help_str'] = help_str
        cls._option_info[internal_name, 'help_cookie'] = help_cookie
        cls._option_info[internal_name, 'cmdline'] = cmdline

        cls._add_option_name('cmdline', cmdline, internal_name)
        assert(cmdline_short is None or len(cmdline_short) == 1) # short option must be 1char
        cls._add_option_name('cmdline_short', cmdline_short, internal_name)
        cls._add_option_name('env', env, internal_name)
        cls._add_option_name('config', config, internal_name)

        cls._option_info[internal_name, 'nonconfig'] = nonconfig
        cls._option_info[internal_name, 'boolean_flag'] = boolean

        # Also generate a negating version for boolean command line options:
        if cmdline is not None and boolean:
            cls._negated_options['no_'+cmdline.replace('-', '_')] = internal_name
            cls._negated_options['no_'+internal_name] = internal_name

    def __init__(self, script_name='go-junit-report', usage_str=None):
        """Initialize a ReportOptions object representing a command.

        Args:
            script_name (str, optional): Name of the command.
            usage_str (str, optional): Help string for the command.
        """
        self.script_name = script_name
        self.usage_str = usage_str

        # Set defaults:
        self.sources = {}
        for k, value in self._option_info.items():
            key, attr_or_flag_name = k
            if attr_or_flag_name != 'default_value': continue
            self.set_option(key, value, 'default')

        # Handling optional positional args:
        self._positional_args = []
        self._cmdline_optional_args = [] # XXX set by parse_cmdline, used by print_help

    source_priorities = ['args', 'env', 'local', 'default']
    """Possible sources of options in order of decreasing priority.

    Here:
    - 'args' represents command line arguments
    - 'env' represents environment variables
    - 'local' represents a configuration file given with --config
    - 'default' represents the default value of the option
    """

    @classmethod
    def source_overrides(cls, source1, source2):
        """Return True if source1 takes priority over source2.

        If source1 is not present in source_priorities and source2 is present,
        the answer is assumed to be False.
        """
        if source1 in cls.source_priorities:
            source1_ix = cls.source_priorities.index(source1)
        else:
            source1_ix = len(cls.source_priorities)
        if source2 in cls.source_priorities:
            source2_ix = cls.source_priorities.index(source2)
        else:
            source2_ix = len(cls.source_priorities)
        return source1_ix <= source2_ix

    def _parse_boolean(self, value):
        if isinstance(value, bool):
            return value
        if value in true_values:
            return True
        if value in false_values:
            return False
        return None

    def set_option(self, key, value, source):
        """Set an option if it wasn't set from any higher-priority source.

        Args:
            key (str): Internal name of the option.
            value (str): New value for the option.
            source (str): The configuration source of the new value.
                Should be an element of ReportOptions.source_priorities.
        """
        if key in _options_base_fields:
            warn_print("attempt to set reserved ReportOptions field '{}'" \
                    .format(key))
            return
        if key in self.__dict__ and key in self.sources \
           and not ReportOptions.source_overrides(source, self.sources[key]):
            return # XXX A value exists with higher priority.
        if key not in self._options:
            if source == 'args':
                self._cmdline_err("unknown option '{}={}'".format(key, value))
            # TODO name the config file where this option originated from
            warn_print("unknown option '{}={}', skipping".format(key, value))
            return
        if self.option_info(key, 'boolean_flag'):
            parsed = self._parse_boolean(value)
            if parsed is None:
                warn_print("unknown boolean option '{}={}'".format(key, value))
                return # keep the previous value
            value = parsed
        self.__dict__[key] = value
        self.sources[key] = source

    def add_config(self, section, config):
        """Add configuration options from a config section.

        Args:
            section (str): Name of the config section to add.
            config (ConfigParser): ConfigParser object representing
               the config file to add options from.
        """
        if section not in config:
            return
        for key, value in config[section].items():
            # Accept 'package-name' as well as 'package_name':
            internal_name = self.option_name(key, 'config') \
                or self.option_name(key, 'cmdline') or key
            if not self.option_info(internal_name, 'nonconfig'):
                self.set_option(internal_name, value, 'local')
            else:
                warn_print("attempt to set non-config option '{}' from config" \
                           .format(key))

    def parse_config(self, config_path):
        """Parse a config file in INI format.

        Options are taken from the sections [core] and [<script_name>].

        Args:
            config_path (Path or str): Path to config file.

        Returns:
            self
        """
        config = ConfigParser()
        if Path(config_path).is_file():
            config.read(str(config_path))
        else:
            raise ReportError("configuration file {} not found".format(config_path))

        self.add_config('core', config)
        if self.script_name is not None:
            self.add_config(self.script_name, config)
        return self

    def parse_environment(self, env):
        """Parse a set of environment variables.

        Args:
            env (map or environ): Environment variables.

        Returns:
            self
        """
        for external_name, internal_name in self.option_names('env'):
            if external_name in env:
                self.set_option(internal_name, env[external_name], 'env')
        return self

    def _cmdline_err(self, msg):
        err_print(msg)
        print(file=sys.stderr)
        self.print_help()
        sys.exit(1)

    def _lookup_cmdline(self, flag):
        """Find the option named by a long command line flag.

        Returns:
            (internal_name, is_negating), or (None, False) if not found.
        """
        flag = flag.replace('-', '_')
        if self.option_name(flag, 'cmdline') is not None:
            return self.option_name(flag, 'cmdline'), False
        if flag in self._negated_options:
            return self._negated_options[flag], True
        if flag in self._options:
            return flag, False
        return None, False

    def _negate_arg(self, internal_name, val):
        parsed = self._parse_boolean(val)
        if parsed is None:
            self._cmdline_err("option '{}' expects a boolean value" \
                              .format(internal_name))
        return not parsed

    def _proc_cmdline_arg(self, arg, next_arg):
        # Go-style flags use a single dash, e.g. '-set-exit-code':
        if len(arg) > 2 and arg.startswith('-') and not arg.startswith('--'):
            keyword = arg[1:].split('=', 1)[0]
            internal_name, _ = self._lookup_cmdline(keyword)
            if internal_name is not None:
                arg = '-' + arg

        m = cmdline_arg_regex.fullmatch(arg) # XXX always matches
        internal_name, use_next = None, False
        val = None
        is_negating = False
        if len(arg) >= 2 and arg.startswith('-') and not arg.startswith('--'):
            # handle '-o arg', '-oarg'
            flag = arg[1:2]
            val = arg[2:]
            if len(val) == 0:
                val = None

            internal_name = self.option_name(flag, 'cmdline_short')
            if internal_name is None:
                self._cmdline_err("unknown flag '{}'".format(arg))

            if val is None and self.option_info(internal_name, 'boolean_flag'):
                val = True
            elif val is None and next_arg is not None \
                 and not next_arg.startswith('-'):
                val, use_next = next_arg, True
            elif val is None:
                self._cmdline_err("option '{}' expects an argument" \
                    .format(arg))
        elif m.group('keyword') is not None:
            # handle '--keyword=arg', 'keyword=arg'
            flag = m.group('keyword')
            val = m.group('arg')
            internal_name, is_negating = self._lookup_cmdline(flag)
            if internal_name is None:
                self._cmdline_err("unknown option '{}'".format(arg))
            if is_negating: val = self._negate_arg(internal_name, val)
        elif m.group('prefix') is not None:
            # handle '--keyword', '--keyword arg'
            flag = m.group('arg')
            internal_name, is_negating = self._lookup_cmdline(flag)
            if internal_name is None:
                self._cmdline_err("unknown flag '{}'".format(arg))

            has_next_arg = next_arg is not None and not next_arg.startswith('-')
            if self.option_info(internal_name, 'boolean_flag'):
                # XXX Don't support '--opt-foo yes' in command line args,
                # only 'opt-foo=yes', '--opt-foo=yes',
                # and '--opt-foo/--no-opt-foo'.
                val = not is_negating
            elif not has_next_arg:
                self._cmdline_err("option '{}' expects an argument" \
                    .format(flag))
            else:
                val, use_next = next_arg, True
        else:
            self._positional_args.append(arg)
            return use_next

        self.set_option(internal_name, val, 'args')
        return use_next

    def parse_cmdline(self, args, optional_args=[], is_sys_argv=True):
        """Parse a set of command line arguments.

        Args:
            args (list of str): Command line arguments.
            optional_args (list of str): Internal names of arguments that
                can be specified as positional arguments, in order.
            is_sys_argv (bool, optional): Command line arguments are from sys.argv.
                The first argument (the name of the program) will be skipped.
                Defaults to True.

        Returns:
            self
        """
        self._cmdline_optional_args = optional_args

        # Handle sys.argv[0]:
        if len(args) > 0 and is_sys_argv:
            args = args[1:]

        # Handle keyword args and flags:
        i = 0
        while i < len(args):
            arg, next_arg = args[i], None
            if i + 1 < len(args):
                next_arg = args[i+1]
            use_next = self._proc_cmdline_arg(arg, next_arg)
            i += 2 if use_next else 1

        # Handle positional args:
        j = 0 # index into self._positional_args
        for internal_name in optional_args:
            if j >= len(self._positional_args):
                break
            if internal_name in self.__dict__ \
               and self.sources[internal_name] == 'args':
                continue # argument is already specified
            self.set_option(internal_name, self._positional_args[j], 'args')
            j += 1
        if j < len(self._positional_args):
            self._cmdline_err("unexpected extra positional argument '{}'" \
                              .format(self._positional_args[j]))

        return self

    def _arg_desc(self, internal_name):
        cmdline = self.option_info(internal_name, 'cmdline')
        name = cmdline if cmdline is not None else internal_name
        cookie = self.option_info(internal_name, 'help_cookie')
        if self.option_info(internal_name, 'boolean_flag'):
            return "--{}".format(name)
        if cookie is None:
            cookie = "<{}>".format(internal_name)
        return "--{}={}".format(name, cookie)

    def print_help(self):
        """Print a usage message listing all options to stderr."""
        LINE_WIDTH = 80
        usage = "USAGE: " + self.script_name
        offset = len(usage)
        indent = " " * (offset+1)
        for internal_name in self._cmdline_optional_args:
            arg_desc = "[<{}>]".format(internal_name)
            if offset + 1 + len(arg_desc) >= LINE_WIDTH:
                usage += "\n" + indent
                offset = len(indent)
            usage += " " + arg_desc
            offset += 1 + len(arg_desc)
        usage += " [options]"

        # TODO: adjust \t to width of arg names?
        arg_info = ""
        for internal_name in sorted(self._options):
            arg_desc = self._arg_desc(internal_name)
            for external_name, k in self.option_names('cmdline_short'):
                if k == internal_name:
                    arg_desc = "-{}, {}".format(external_name, arg_desc)
            description = self.option_info(internal_name, 'help_str')
            arg_info += "- {}\t{}\n".format(arg_desc, description)

        if self.usage_str is not None:
            usage += "\n\n"
            usage += self.usage_str
        usage += "\n\nArguments:\n"
        usage += arg_info
        warn_print(usage, prefix="")

ReportOptions.add_option('package_name',
    cmdline='package-name', env='GO_JUNIT_PACKAGE_NAME', default=None,
    help_cookie='<name>',
    help_str="Package name to use for every package; compiled test binaries do not print one.")
ReportOptions.add_option('go_version',
    cmdline='go-version', env='GO_JUNIT_GO_VERSION', default=None,
    help_cookie='<version>',
    help_str="Value of the go.version property; default is the version reported by 'go env'.")
ReportOptions.add_option('no_xml_header',
    cmdline='no-xml-header', boolean=True,
    help_str="Do not print the XML header.")
ReportOptions.add_option('set_exit_code',
    cmdline='set-exit-code', boolean=True,
    help_str="Exit with status 1 if any tests failed.")
ReportOptions.add_option('strip_ansi_escape_codes',
    cmdline='strip-ansi-escape-codes', boolean=True,
    help_str="Strip ANSI escape codes (terminal colors) from test output.")
ReportOptions.add_option('full_package_classname',
    cmdline='full-package-classname', boolean=True,
    help_str="Use the full package name as the test classname instead of just the last part.")
ReportOptions.add_option('output_format',
    cmdline='format', env='GO_JUNIT_FORMAT', default='xml',
    help_cookie='xml|json',
    help_str="Output format.")
ReportOptions.add_option('input_path',
    cmdline='input', cmdline_short='i', default=None,
    help_cookie='<path>',
    help_str="File containing 'go test -v' output; default standard input.")
ReportOptions.add_option('output_path',
    cmdline='output', cmdline_short='o', default=None,
    help_cookie='<path>',
    help_str="File to write the report to; default standard output.")
ReportOptions.add_option('progress',
    cmdline='progress', boolean=True,
    help_str="Show a progress bar on standard error while reading input.")
ReportOptions.add_option('verbose',
    cmdline='verbose', cmdline_short='v', boolean=True,
    help_str="Warn about inconsistencies found in the input.")
ReportOptions.add_option('config_path',
    cmdline='config', env='GO_JUNIT_CONFIG', nonconfig=True, default=None,
    help_cookie='<path>',
    help_str="Path to an INI config file with [core] or [go-junit-report] sections.")
ReportOptions.add_option('should_print_help',
    cmdline='help', cmdline_short='h', nonconfig=True, boolean=True,
    help_str="Show this help message.")
