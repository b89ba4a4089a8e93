from argparse import Namespace


class CommandLineUtils:
    """
    Collection of static command line related methods.
    """

    @staticmethod
    def print_line_of_token(token: str = "_"):
        """
        Print a line to the console with the given token, default is '_'
        :param token: Token of which the printed line will consist.
        :return: N/A prints line of tokens.
        """
        line_length = 101
        repeat_count = line_length // len(token)
        print(token * repeat_count)

    @staticmethod
    def readout(*args):
        """
        Print out the keys and values from all the arguments. Namespaces and pydantic models are turned into dicts
        first, nested models are printed as their dict representation.
        :param args: argparse Namespaces, pydantic models or dicts.
        :return: N/A prints contents of args
        """
        CommandLineUtils.print_line_of_token("#")
        print("All config values and command line arguments:")
        for arg in args:
            if isinstance(arg, Namespace):
                arg = vars(arg)
            elif hasattr(arg, "model_dump"):
                arg = arg.model_dump()
            for key, value in dict(arg).items():
                print(f"{key}: {value}")
        CommandLineUtils.print_line_of_token("#")

    @staticmethod
    def stage_banner(stage: str, subject: str):
        """
        Print a banner announcing a stage of the build, boxed in by lines of underscores.
        :param stage: Name of the stage, ie 'Parsing'.
        :param subject: What the stage is acting on, ie a file path or source name.
        :return: N/A prints banner.
        """
        CommandLineUtils.print_line_of_token()
        print(f"{stage}: {subject}")
        CommandLineUtils.print_line_of_token()
