"""Checks the HTML that a web app produces, while it is being developed.

After the app has produced a response, the HTML validator plugin submits
the response body to the Nu Html Checker (v.Nu). If the checker finds
problems, the response is replaced by a page listing them, together with
the numbered source of the offending document, and the status becomes
500 (Internal Server Error). This makes invalid HTML impossible to miss
during development.

Overview
========

`htmlvalidator.plugin.HtmlValidatorPlugin` is the entry point for host
applications: it is called after each request and sets the
`X-Html-Validator-Plugin` response header to a short description of what
it decided, for example `success`, `fail; from-cache` or
`ignored; not-html`. The plugin is only active when the application runs
in debug mode, unless the configuration forces it.

The decision itself is made by `htmlvalidator.checker.HTMLChecker`:

- `htmlvalidator.pathmatch` skips paths that match configured ignore rules;
- `htmlvalidator.classify` skips bodies that are empty or not HTML;
- `htmlvalidator.cache` reuses results for identical bodies for a day;
- `htmlvalidator.vnuclient` talks to the checker web service;
- `htmlvalidator.errorpage` renders the replacement page.

Configuration is assembled with `htmlvalidator.config.PluginConfigBuilder`
before the application starts serving requests.

Adapters
========

`htmlvalidator.middleware.HTMLValidatorMiddleware` runs the plugin on any
WSGI application. `htmlvalidator.cmdline` checks files from the command
line, sharing the plugin's result cache.
"""
