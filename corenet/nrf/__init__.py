"""Network Repository Function: data model, registry, configuration, HTTP server and client."""