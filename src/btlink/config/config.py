"""
Loads layered configuration files and applies them to module attributes.
"""
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

# The default extension for configuration files
config_extension = '.cfg'


def config_flavor(name, flavor=None):
    """
    >>> config_flavor('btlink')
    'btlink'
    >>> config_flavor('btlink', 'default')
    'btlink.default'
    """
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory, name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, subpart=None) -> ConfigObj:
    """
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name. A missing file gives an empty configuration.
    """
    file = config_filename(config_flavor(name, subpart), directory)
    return load_config_file_base(file, False)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def user_config_file(name):
    """
    The per-user override file. The environment variable NAME_CONFIG (upper case) takes precedence
    over ~/name.cfg.
    """
    return os.environ.get(name.upper() + '_CONFIG') or os.path.expanduser('~/' + name + config_extension)


def describe_errors(config, result):
    """ renders the validation result as a list of 'section/key: problem' strings """
    errors = []
    for section_list, key, error in flatten_errors(config, result):
        location = '/'.join(section_list + [key] if key is not None else section_list)
        errors.append("%s: %s" % (location, error if error else 'missing'))
    return errors


def load_config(name, directory):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are merged in this order, later files overriding earlier ones:
        - the default specialization
        - the platform specialization
        - the user override
        - the local configuration
        The merged configuration is validated against the schema specialization, which
        also supplies defaults for values that are not given.
    :param directory: the location of the configuration files
    :return: the validated ConfigObj
    """
    default_config = config_flavor_file(name, directory, 'default')
    platform_config = config_flavor_file(name, directory, os_name())
    user_config = load_config_file_base(user_config_file(name), must_exist=False)
    local_config = config_flavor_file(name, directory)
    config = ConfigObj()
    config.merge(default_config)
    config.merge(platform_config)
    config.merge(user_config)
    config.merge(local_config)

    config.configspec = config_flavor_file(name, directory, 'schema')
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        raise ConfigObjError("the config file %s failed validation %s" %
                             (name, ', '.join(describe_errors(config, result))))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:        An iterable that lists the names of the nested sections to resolve
    :return: The configuration section identified by the path, or None.
    """
    for p in path:
        conf = conf.get(p, None)
        if conf is None:
            return
    return conf


def apply_conf(conf: Section, target):
    """
    Sets each scalar value in the section as an attribute of the target, provided the target
    already has an attribute with that name.
    :return: the names of the attributes that were set
    """
    applied = []
    for k in conf.scalars:
        if hasattr(target, k):
            setattr(target, k, conf[k])
            applied.append(k)
    return applied


def apply_conf_path(conf: Section, name_parts, target):
    conf = fetch_conf_path(conf, name_parts)
    return apply_conf(conf, target) if conf else []


def fq_module_name(module):
    """
    Retrieves the fully qualified name of the module.
    """
    if not module.__package__ or module.__name__ == '__main__':
        raise ConfigObjError('module %s has no package defined' % module.__name__)
    return module.__name__


def configure_module(module, config_name=None):
    """
    Applies the configuration to the given module.
    The configuration files are found in the module's directory and the values
    are read from the nested sections that follow the module's dotted name, e.g.
    [btlink] [[settings]] for btlink.settings.
    :param config_name: the base name of the configuration files. Defaults to the
        module file name.
    :return: the names of the module attributes that were configured
    """
    fqname = fq_module_name(module)
    if not config_name:
        config_name = fqname.split('.')[-1]
    conf = load_config(config_name, os.path.dirname(module.__file__))
    return apply_conf_path(conf, fqname.split('.'), module)
