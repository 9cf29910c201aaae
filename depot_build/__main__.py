"""Run the depot-build command line tool."""

from depot_build.tool.depot_build import main

main()
